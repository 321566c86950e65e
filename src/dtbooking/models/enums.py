"""String enums for booking, user and notification fields."""

from enum import StrEnum


class JobStatus(StrEnum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    WITHDRAW_BEFORE_24 = "withdrawbefore24"
    WITHDRAW_AFTER_24 = "withdrawafter24"
    TIMEDOUT = "timedout"
    NOT_CARRIED_OUT_CUSTOMER = "not_carried_out_customer"


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.ASSIGNED, JobStatus.STARTED)
HISTORIC_STATUSES = (
    JobStatus.COMPLETED,
    JobStatus.WITHDRAW_BEFORE_24,
    JobStatus.WITHDRAW_AFTER_24,
    JobStatus.TIMEDOUT,
)


class JobType(StrEnum):
    PAID = "paid"
    RWS = "rws"
    UNPAID = "unpaid"


class Certified(StrEnum):
    NORMAL = "normal"
    BOTH = "both"
    YES = "yes"
    LAW = "law"
    N_LAW = "n_law"
    HEALTH = "health"
    N_HEALTH = "n_health"


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"


class UserType(StrEnum):
    CUSTOMER = "customer"
    TRANSLATOR = "translator"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


ADMIN_USER_TYPES = (UserType.ADMIN, UserType.SUPERADMIN)


class TranslatorType(StrEnum):
    PROFESSIONAL = "professional"
    RWS_TRANSLATOR = "rwstranslator"
    VOLUNTEER = "volunteer"


class ConsumerType(StrEnum):
    PAID = "paid"
    RWS_CONSUMER = "rwsconsumer"
    NGO = "ngo"


class TranslatorLevel(StrEnum):
    CERTIFIED = "Certified"
    CERTIFIED_LAW = "Certified with specialisation in law"
    CERTIFIED_HEALTH = "Certified with specialisation in health care"
    LAYMAN = "Layman"
    READ_COURSES = "Read Translation courses"


class NotificationType(StrEnum):
    SUITABLE_JOB = "suitable_job"
    SESSION_START_REMIND = "session_start_remind"
    JOB_ACCEPTED = "job_accepted"
    JOB_CANCELLED = "job_cancelled"
    JOB_EXPIRED = "job_expired"


YES = "yes"
NO = "no"

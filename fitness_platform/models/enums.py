from enum import Enum


class TargetType(str, Enum):
    GYM_OWNER = "gym_owner"
    TRAINER = "trainer"
    CUSTOMER = "customer"


class OTPChannel(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class AuthAction(str, Enum):
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"
    FAILED_LOGIN = "FAILED_LOGIN"
    OTP_REQUEST = "OTP_REQUEST"
    OTP_VERIFICATION = "OTP_VERIFICATION"

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATUS = "INVALID_STATUS"
    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    INVALID_OPTION_SELECTION = "INVALID_OPTION_SELECTION"
    SURVEY_NOT_FOUND = "SURVEY_NOT_FOUND"
    SURVEY_NOT_ACTIVE = "SURVEY_NOT_ACTIVE"
    RESPONSE_ALREADY_EXISTS = "RESPONSE_ALREADY_EXISTS"
    STORAGE_ERROR = "STORAGE_ERROR"
    SERVER_ERROR = "SERVER_ERROR"

    def __str__(self) -> str:
        return self.value

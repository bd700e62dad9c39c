class AppStatusCode:
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"

    OPERATION_FAILED = "200"
    INVALID_INPUT = "201"
    RECORD_NOT_FOUND = "202"
    INVALID_STATE_TRANSITION = "203"
    CONCURRENT_UPDATE = "204"
    PERSISTENCE_FAILED = "205"

    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    AUTHENTICATION_USER_INVALID = "302"
    ACCESS_FORBIDDEN = "303"

class AccountError(Exception):
    pass


class AccountValidationError(AccountError):
    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class AccountAlreadyExistsError(AccountError):
    pass


class InvalidCredentialsError(AccountError):
    pass


class AuthenticationRequiredError(AccountError):
    pass

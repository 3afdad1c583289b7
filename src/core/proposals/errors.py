from typing import Optional


class ProposalError(Exception):
    pass


class ProposalNotFoundError(ProposalError):
    pass


class ProposalValidationError(ProposalError):
    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidSignatureRoleError(ProposalError):
    pass


class ProposalAccessDeniedError(ProposalError):
    pass


class ProposalLockedError(ProposalError):
    pass


class ProposalAlreadySignedError(ProposalLockedError):
    pass


class ProposalTransitionError(ProposalError):
    pass

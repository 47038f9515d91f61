class LedgerError(Exception):
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(LedgerError):
    status_code = 400
    default_message = 'Invalid request'


class NotFound(LedgerError):
    status_code = 404
    default_message = 'Not found'


class Unauthorized(LedgerError):
    status_code = 401
    default_message = 'Unauthorized'


class BusinessRuleViolation(LedgerError):
    status_code = 400
    default_message = 'Operation not allowed'


class DependencyExists(BusinessRuleViolation):
    default_message = 'Dependent records exist'


class InternalError(LedgerError):
    status_code = 500
    default_message = 'Internal server error'

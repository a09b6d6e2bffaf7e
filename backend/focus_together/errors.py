"""Failures raised by the session core and store.

Every error maps 1:1 onto a JSON response of the form
``{"error": <name>, "message": <text>, "code": <status>}``. None of them
are transient, so callers never retry.
"""


class SessionError(Exception):
    name = 'SessionError'
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.name)
        self.message = message or self.name

    def to_dict(self):
        return {
            'error': self.name,
            'message': self.message,
            'code': self.status_code,
        }


class NotFound(SessionError):
    name = 'NotFound'
    status_code = 404


class AlreadyExists(SessionError):
    name = 'AlreadyExists'


class InvalidSettings(SessionError):
    name = 'InvalidSettings'


class NotStarted(SessionError):
    name = 'NotStarted'


class AlreadyStarted(SessionError):
    name = 'AlreadyStarted'


class AlreadyPaused(SessionError):
    name = 'AlreadyPaused'


class AlreadyInProgress(SessionError):
    name = 'AlreadyInProgress'


class AlreadyStopped(SessionError):
    name = 'AlreadyStopped'


class AlreadyJoined(SessionError):
    name = 'AlreadyJoined'


class NotAParticipant(SessionError):
    name = 'NotAParticipant'
    status_code = 403


class NotOwner(SessionError):
    name = 'NotOwner'
    status_code = 403

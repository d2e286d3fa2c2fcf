"""
Exception types for the pose challenge engine.

Core arithmetic never raises for well-shaped input; these exceptions cover
precondition violations and invalid operator requests.
"""


class CustomException(Exception):
    code = '000'
    message = ''

    def __init__(self, code: str = None, message: str = None):
        if code:
            self.code = code
        if message:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'code': self.code, 'message': self.message}


class LandmarkSchemaError(CustomException):
    """Two landmark sets cannot be compared (length or schema mismatch)."""
    code = '400'
    message = 'Landmark sets do not share the same schema'


class InvalidTargetTimeError(CustomException):
    code = '400'
    message = 'Unsupported target hold time'


class InvalidPoseIndexError(CustomException):
    code = '404'
    message = 'Pose index is outside the current sequence'


class DetectorInitError(CustomException):
    code = '500'
    message = 'Pose detector could not be initialized'

"""
Custom exceptions for the SA ID password cracker.
"""

class IdCrackerError(Exception):
    """Base exception for SA ID cracker errors"""
    pass


class InvalidArgumentError(IdCrackerError, ValueError):
    """Malformed checksum input, identity pattern or field value"""
    pass


class DocumentNotFoundError(IdCrackerError):
    """Document file not found"""
    pass


class DocumentNotEncryptedError(IdCrackerError):
    """Document is not password protected"""
    pass


class TesterFaultError(IdCrackerError):
    """The password tester failed for a reason other than a wrong password"""

    def __init__(self, message: str, candidate: str = None):
        super().__init__(message)
        self.candidate = candidate


class WorkerError(IdCrackerError):
    """Error in worker process"""
    pass


class ConfigError(IdCrackerError):
    """Error in configuration"""
    pass

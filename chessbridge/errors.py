"""
Bridge Errors
Error taxonomy shared by the engine session, the dispatcher and the web app
"""

from typing import Dict, Optional


class BridgeError(Exception):
    """Base class for every error the bridge reports to a caller"""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, str]:
        """Response body for this error"""
        body = {"error": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class ClientInputError(BridgeError):
    """Request was rejected before any engine was started"""

    status_code = 400


class EngineLaunchError(BridgeError):
    """Engine executable could not be spawned"""

    status_code = 500


class EngineDirectoryError(BridgeError):
    """Engine directory could not be read"""

    status_code = 500


class EngineProtocolAnomaly(BridgeError):
    """Engine went away without ever producing a bestmove"""

    status_code = 502


class EngineTimeoutError(BridgeError):
    """No bestmove arrived before the session deadline"""

    status_code = 504

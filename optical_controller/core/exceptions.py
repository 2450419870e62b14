"""
Exceptions raised at collaborator boundaries of the controller.
"""


class ControllerError(Exception):
    """Base class for controller errors."""


class DeviceSessionError(ControllerError):
    """A device session could not serve a get or edit-config request."""


class PathComputationError(ControllerError):
    """The path computation engine could not be reached or answered badly."""


class NotConnectedError(PathComputationError):
    """No connection to the path computation engine has been set up."""

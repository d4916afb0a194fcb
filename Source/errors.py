"""
Error taxonomy for ShareBill
"""


class ShareBillError(Exception):
    """Base class for every error raised by ShareBill"""


class ValidationError(ShareBillError):
    """Bad user input, e.g. an empty friend name"""


class NotFoundError(ShareBillError):
    """An operation referenced an item or friend id that does not exist"""


class StateError(ShareBillError):
    """The operation is not allowed in the current session phase"""


class AnalysisError(ShareBillError):
    """The receipt analysis service failed or returned something unusable"""


class EditError(ShareBillError):
    """The image edit service did not return an image"""

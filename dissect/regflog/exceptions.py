class Error(Exception):
    pass


class LogFileError(Error, OSError):
    pass


class ScanInProgressError(Error):
    pass

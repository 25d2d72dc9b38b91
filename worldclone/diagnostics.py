"""
Diagnostic sinks receive every recoverable anomaly met while cloning chunks (missing or malformed data, unreadable files).
A sink is handed to the ChunkAssembler at construction, so tests and hosts can decide where reports go.
"""
import logging
import sys

LOGGER_NAME = "worldclone"

class DiagnosticSink:
    """
    Interface for diagnostic sinks.
    reportIssue() must not raise; the core calls it from paths that are expected to keep going.
    """
    def reportIssue( self, message, cause=None ):
        raise NotImplementedError()

class LoggingDiagnosticSink( DiagnosticSink ):
    """
    Reports issues at ERROR level to a logger (by default, the "worldclone" logger).
    If a cause is given, its traceback is attached to the record.
    """
    __slots__ = ( "logger", )

    def __init__( self, logger=None ):
        self.logger = logger if logger is not None else logging.getLogger( LOGGER_NAME )

    def reportIssue( self, message, cause=None ):
        if cause is None:
            self.logger.error( message )
        else:
            self.logger.error( message, exc_info=( type( cause ), cause, cause.__traceback__ ) )

class CollectingDiagnosticSink( DiagnosticSink ):
    """Keeps reported issues in memory as ( message, cause ) pairs. Useful for hosts that batch their reports, and for tests."""
    __slots__ = ( "issues", )

    def __init__( self ):
        self.issues = []

    def reportIssue( self, message, cause=None ):
        self.issues.append( ( message, cause ) )

    def __len__( self ):
        return len( self.issues )

def configureLogging( logFile=None, level=logging.INFO ):
    """
    Sends worldclone's log records to stdout and, if logFile is given, appends them to that file.
    Only the "worldclone" logger is configured; the root logger and other libraries are left alone.
    Returns the configured logger.
    """
    logger = logging.getLogger( LOGGER_NAME )
    formatter = logging.Formatter( "%(asctime)s [%(levelname)s] %(name)s | %(message)s", "%Y-%m-%d %H:%M:%S" )

    handlers = [ logging.StreamHandler( sys.stdout ) ]
    if logFile is not None:
        handlers.append( logging.FileHandler( logFile, mode="a", encoding="utf-8" ) )

    for handler in list( logger.handlers ):
        logger.removeHandler( handler )
        handler.close()
    for handler in handlers:
        handler.setFormatter( formatter )
        logger.addHandler( handler )
    logger.setLevel( level )
    logger.propagate = False
    return logger

"""
A bounded, thread-safe key -> value store with least-recently-used eviction and single-flight computation.
"""
import logging
import threading

from collections import OrderedDict

logger = logging.getLogger( __name__ )

#Marks a missing entry; None is a legitimate cached value.
_MISSING = object()

class _Pending:
    """An in-flight computation for a single key. Waiters block on the event until the owner publishes a result."""
    __slots__ = ( "event", "value", "error" )

    def __init__( self ):
        self.event = threading.Event()
        self.value = None
        self.error = None

    def resolve( self, value ):
        self.value = value
        self.event.set()

    def fail( self, error ):
        self.error = error
        self.event.set()

    def wait( self ):
        self.event.wait()
        if self.error is not None:
            raise self.error
        return self.value

class BoundedCache:
    """
    Maps keys to values, holding at most capacity entries.

    When admitting an entry would exceed capacity, the least-recently-used entry is evicted.
    If onEvict is given, it is called as onEvict( key, value ) for every evicted entry, after the entry has left the cache.

    getOrCompute() guarantees at most one in-flight computation per key: concurrent callers asking for the same
    missing key wait for the first caller's result instead of computing it again.
    The internal lock only guards bookkeeping; computations run outside of it, so a slow computation for one key
    doesn't hold up callers asking for other keys.
    """
    __slots__ = ( "capacity", "_entries", "_pending", "_lock", "_onEvict" )

    def __init__( self, capacity, onEvict=None ):
        if capacity < 1:
            raise ValueError( "Cache capacity must be at least 1, got {:d}.".format( capacity ) )
        self.capacity = capacity
        self._entries = OrderedDict()
        self._pending = {}
        self._lock    = threading.Lock()
        self._onEvict = onEvict

    def get( self, key, default=None ):
        """Returns the value cached for key (marking it as recently used), or default if there is none."""
        with self._lock:
            value = self._entries.get( key, _MISSING )
            if value is _MISSING:
                return default
            self._entries.move_to_end( key )
            return value

    def getOrCompute( self, key, compute ):
        """
        Returns the value cached for key.
        On a miss, calls compute() to produce the value, caches it, and returns it.
        If another thread is already computing the value for key, waits for and returns that thread's result instead.

        If compute() raises, nothing is cached and the exception propagates to the caller and to every waiter.
        """
        with self._lock:
            value = self._entries.get( key, _MISSING )
            if value is not _MISSING:
                self._entries.move_to_end( key )
                return value
            pending = self._pending.get( key )
            owner = pending is None
            if owner:
                self._pending[ key ] = pending = _Pending()

        if not owner:
            return pending.wait()

        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                del self._pending[ key ]
            pending.fail( e )
            raise

        with self._lock:
            del self._pending[ key ]
            evicted = self._admit( key, value )
        self._evict( evicted )
        pending.resolve( value )
        return value

    def put( self, key, value ):
        """Caches value for key, replacing any existing entry."""
        with self._lock:
            evicted = self._admit( key, value )
        self._evict( evicted )

    def discard( self, key ):
        """
        Removes the entry for key, if any, without calling onEvict.
        Returns the removed value, or None.
        """
        with self._lock:
            return self._entries.pop( key, None )

    def clear( self ):
        """Removes every entry, calling onEvict for each of them."""
        with self._lock:
            evicted = list( self._entries.items() )
            self._entries.clear()
        self._evict( evicted )

    def _admit( self, key, value ):
        #Must be called with the lock held. Returns the entries pushed out to make room.
        entries = self._entries
        if key in entries:
            old = entries.pop( key )
            evicted = [ ( key, old ) ] if old is not value else []
        else:
            evicted = []
        entries[ key ] = value
        while len( entries ) > self.capacity:
            evicted.append( entries.popitem( last=False ) )
        return evicted

    def _evict( self, evicted ):
        onEvict = self._onEvict
        for key, value in evicted:
            logger.debug( "Evicted %r", key )
            if onEvict is not None:
                onEvict( key, value )

    def __contains__( self, key ):
        with self._lock:
            return key in self._entries

    def __len__( self ):
        with self._lock:
            return len( self._entries )

    def keys( self ):
        """Returns a list of cached keys, least-recently-used first."""
        with self._lock:
            return list( self._entries.keys() )

    def __repr__( self ):
        return "BoundedCache({:d}/{:d})".format( len( self ), self.capacity )

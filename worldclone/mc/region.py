#This module contains code for reading Anvil region files.
#
#A region file holds a sparsely populated 32x32 grid of chunks and is named after its region coordinates, "r.{x}.{z}.mca".
#Region files are divided into 4KiB blocks called sectors, and start with an 8 KiB large header:
#    * 1024 locations, one 4-byte big-endian entry per chunk slot:
#        offset << 8 | size
#      where offset is the first sector of the chunk and size the number of sectors allocated to it.
#      If a location is 0, the chunk has not been generated.
#    * 1024 timestamps, one 4-byte big-endian entry per chunk slot (seconds since the unix epoch).
#The slot of the chunk with region-local coordinates (lx,lz) is lx + 32*lz.
#Each chunk starts with a 5 byte header (4-byte length, 1-byte compression type), followed by the compressed NBT.
#Decompressing and parsing the chunk is left to worldclone.tag.decodeChunk().

import os
import logging
import threading

from contextlib import contextmanager
from io import BytesIO

from worldclone.cache       import BoundedCache
from worldclone.coords      import CoordXZ, REGION_SIZE
from worldclone.diagnostics import LoggingDiagnosticSink
from worldclone.shared      import (
    DecodeError, RegionFormatError,
    readUnsignedInts as _ruis, _UI
)

logger = logging.getLogger( __name__ )

FMT_FILENAME = "r.{:d}.{:d}.mca"

SECTOR_SIZE  = 4096
HEADER_SIZE  = 2 * SECTOR_SIZE
SLOT_COUNT   = REGION_SIZE * REGION_SIZE

class RegionFile:
    """
    An open Anvil region file.

    The location and timestamp tables are read once, when the file is opened; chunk payloads are read on demand.
    Reads are serialized on a per-file lock, so a RegionFile can be shared between threads.

    A RegionFile held by a RegionFileCache is pinned while it is being read.
    Once the cache evicts it, the file is closed as soon as the last pin is released.
    """
    __slots__ = ( "x", "z", "path", "_file", "_size", "_locations", "_timestamps", "_lock", "_pins", "_retired", "_closed" )

    def __init__( self, rx, rz, path ):
        """
        Opens the region file at path.
        rx and rz are the region coordinates.
        Raises OSError if the file can't be opened or read, and RegionFormatError if it is too short to hold a header.
        """
        self.x    = rx
        self.z    = rz
        self.path = path

        self._lock     = threading.Lock()
        self._pins     = 0
        self._retired  = False
        self._closed   = False

        self._file = file = open( path, "rb" )
        try:
            self._size = size = os.fstat( file.fileno() ).st_size
            #A zero-length file is a region that was created but never written to.
            if size == 0:
                self._locations  = [ 0 ] * SLOT_COUNT
                self._timestamps = [ 0 ] * SLOT_COUNT
            elif size < HEADER_SIZE:
                raise RegionFormatError( "Region file is {:d} bytes long, too short to hold a {:d} byte header.".format( size, HEADER_SIZE ) )
            else:
                self._locations  = _ruis( file, SLOT_COUNT )
                self._timestamps = _ruis( file, SLOT_COUNT )
        except BaseException:
            file.close()
            self._closed = True
            raise
        logger.debug( "Opened region file %s", path )

    def readChunkStream( self, lx, lz ):
        """
        Returns a readable file-like object holding the stored bytes of the chunk at region-local coordinates (lx, lz),
        starting with its 5-byte chunk header. The payload is still compressed.
        Returns None if the chunk slot is unwritten.

        lx and lz are expected to be in the range [0,31].
        Raises RegionFormatError if the location entry points to somewhere a chunk can't be.
        Raises OSError if reading fails, and ValueError if the file has been closed.
        """
        if not ( 0 <= lx < REGION_SIZE and 0 <= lz < REGION_SIZE ):
            raise ValueError( "Region-local chunk coordinates ({:d}, {:d}) are outside of [0,31].".format( lx, lz ) )

        loc = self._locations[ lx + REGION_SIZE * lz ]
        if loc == 0:
            return None

        sector  = loc >> 8
        sectors = loc & 0xFF
        if sector < 2:
            raise RegionFormatError( "Chunk ({:d}, {:d}) is located inside the region header (sector {:d}).".format( lx, lz, sector ) )
        if sectors == 0:
            raise RegionFormatError( "Chunk ({:d}, {:d}) has no sectors allocated to it.".format( lx, lz ) )

        offset    = SECTOR_SIZE * sector
        allocsize = SECTOR_SIZE * sectors
        if offset >= self._size:
            raise RegionFormatError( "Chunk ({:d}, {:d}) starts at byte {:d}, past the end of the file ({:d} bytes).".format( lx, lz, offset, self._size ) )

        with self._lock:
            if self._closed:
                raise ValueError( "Region file {} has been closed.".format( self.path ) )
            file = self._file
            file.seek( offset, os.SEEK_SET )
            #The last chunk in a file may not be padded out to a full sector.
            data = file.read( min( allocsize, self._size - offset ) )

        if len( data ) >= 4:
            length = _UI.unpack_from( data )[0]
            if length + 4 > allocsize:
                raise RegionFormatError( "Chunk ({:d}, {:d}) declares {:d} bytes, but only {:d} sectors are allocated to it.".format( lx, lz, length, sectors ) )
        return BytesIO( data )

    def hasChunk( self, lx, lz ):
        """Returns True if the chunk slot at region-local coordinates (lx, lz) has been written."""
        return self._locations[ lx + REGION_SIZE * lz ] != 0

    def getTimestamp( self, lx, lz ):
        """Returns the time the chunk at region-local coordinates (lx, lz) was last saved, in seconds since the unix epoch (0 if unwritten)."""
        return self._timestamps[ lx + REGION_SIZE * lz ]

    def iterChunkCoords( self ):
        """Iterates over the region-local coordinates (lx, lz) of every written chunk in this region."""
        for i, loc in enumerate( self._locations ):
            if loc != 0:
                lz, lx = divmod( i, REGION_SIZE )
                yield CoordXZ( lx, lz )

    def pin( self ):
        """
        Marks the file as in use. Returns False (without pinning) if the file has been retired.
        Every successful pin() must be paired with an unpin().
        """
        with self._lock:
            if self._retired:
                return False
            self._pins += 1
            return True

    def unpin( self ):
        with self._lock:
            self._pins -= 1
            close = self._retired and self._pins == 0
        if close:
            self._close()

    def retire( self ):
        """Closes the file once nobody has it pinned. No new pins are accepted afterwards."""
        with self._lock:
            if self._retired:
                return
            self._retired = True
            close = self._pins == 0
        if close:
            self._close()

    def _close( self ):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._file.close()
        logger.debug( "Closed region file %s", self.path )

    close = retire

    def getClosed( self ):
        return self._closed
    closed = property( getClosed )

    def __enter__( self ):
        return self

    def __exit__( self, *args ):
        self.close()

    def __len__( self ):
        """
        Returns the number of chunks in this region.
        Returns an int in the range [0, 1024].
        """
        return sum( 1 for loc in self._locations if loc != 0 )

    def __repr__( self ):
        return "RegionFile({:d}, {:d}, '{}')".format( self.x, self.z, self.path )

class RegionFileCache:
    """
    Keeps up to capacity region files of one region directory open, keyed by region coordinates.

    Region files are opened lazily, once per region even when several threads ask for it at the same time.
    Evicted files are closed. Missing region files aren't an error; they simply produce no handle.
    Files that exist but can't be opened are reported to the diagnostic sink and treated as missing;
    nothing is cached for them, so a later request tries again.
    """
    __slots__ = ( "folder", "sink", "_cache" )

    def __init__( self, folder, capacity=4, sink=None ):
        self.folder = folder
        self.sink   = sink if sink is not None else LoggingDiagnosticSink()
        self._cache = BoundedCache( capacity, self._onEvict )

    def getPath( self, rx, rz ):
        """Returns the path of the region file for region coordinates (rx, rz)."""
        return os.path.join( self.folder, FMT_FILENAME.format( rx, rz ) )

    @contextmanager
    def open( self, rx, rz ):
        """
        Context manager yielding the RegionFile for region coordinates (rx, rz), or None if there is no such file.
        The file is pinned for the duration of the with block, so eviction can't close it mid-read:
            with cache.open( rx, rz ) as region:
                if region is not None:
                    stream = region.readChunkStream( lx, lz )
        """
        region = self._acquire( rx, rz )
        try:
            yield region
        finally:
            if region is not None:
                region.unpin()

    def get( self, rx, rz ):
        """
        Returns the RegionFile for region coordinates (rx, rz), opening it if necessary, or None if there is no such file.
        The returned handle isn't pinned; a later eviction may close it. Use open() to read from it.
        """
        region = self._acquire( rx, rz )
        if region is not None:
            region.unpin()
        return region

    def _acquire( self, rx, rz ):
        path = self.getPath( rx, rz )
        if not os.path.isfile( path ):
            return None

        key = CoordXZ( rx, rz )
        while True:
            try:
                region = self._cache.getOrCompute( key, lambda: RegionFile( rx, rz, path ) )
            except ( OSError, DecodeError ) as e:
                self.sink.reportIssue( "Couldn't open region file {}".format( FMT_FILENAME.format( rx, rz ) ), e )
                return None
            #A failed pin means the handle was evicted between lookup and pin; the next lookup reopens it.
            if region.pin():
                return region

    def _onEvict( self, key, region ):
        region.retire()

    def close( self ):
        """Closes every open region file."""
        self._cache.clear()

    def __contains__( self, coords ):
        return CoordXZ( *coords ) in self._cache

    def __len__( self ):
        return len( self._cache )

    def __repr__( self ):
        return "RegionFileCache('{}', {!r})".format( self.folder, self._cache )

"""
worldclone's tag module provides a DOM-style tag tree for NBT documents.

Tags are subclasses of Python's own types (int, float, bytearray, str, list, OrderedDict, array)
so decoded data can be used directly, while still remembering which NBT type they were stored as.
read() parses a document, decodeChunk() parses the framed, compressed payload of a region file chunk.
"""
import gzip
import zlib

from collections import OrderedDict
from array import array
from io import BytesIO

from worldclone.shared import (
    NBTFormatError, WrongTagError, DuplicateNameError, OutOfBoundsError, CompressionError,
    TAG_END, TAG_BYTE, TAG_SHORT, TAG_INT, TAG_LONG, TAG_FLOAT, TAG_DOUBLE, TAG_BYTE_ARRAY, TAG_STRING, TAG_LIST, TAG_COMPOUND, TAG_INT_ARRAY,
    TAG_NAMES, SIGNED_INT_TYPE,
    COMPRESSION_GZIP, COMPRESSION_ZLIB, COMPRESSION_NONE, MAX_DEPTH,

    writeTagName        as _wtn,  writeByte         as _wb,   writeShort          as _ws,
    writeInt            as _wi,   writeLong         as _wl,   writeFloat          as _wf,
    writeDouble         as _wd,   writeString       as _wst,  writeTagListHeader  as _wlh,
    writeByteArray      as _wba,  writeIntArray     as _wia,

    readByte            as _rb,   readShort         as _rs,   readInt             as _ri,
    readLong            as _rl,   readFloat         as _rf,   readDouble          as _rd,
    readString          as _rst,  readTagListHeader as _rlh,  readArrayHeader     as _rah,
    readInts            as _ris,  read              as _r,    readExpectedTagName as _retn,
    readChunkHeader     as _rch,

    assertValidTagType  as _avtt
)

_int_repr   = int.__repr__
_float_repr = float.__repr__
_str_repr   = str.__repr__
_array_new  = array.__new__

#Returns a tag class that stores a primitive like byte, short, int, or long.
def _makeIntPrimitiveClass( classname, tt, vmin, vmax, r, w ):
    class _IntPrimitiveTag( _BaseIntTag ):
        def __init__( self, value=0 ):
            #int.__new__ has already produced self; value is only here so __init__ accepts the argument.
            if self < vmin or self > vmax:
                raise OutOfBoundsError( self, vmin, vmax )
        tagType = tt
        min = vmin
        max = vmax
        _w  = w
    def _r( i ):
        return _IntPrimitiveTag( r( i ) )
    _IntPrimitiveTag._r = staticmethod( _r )

    _IntPrimitiveTag.__name__ = classname
    _IntPrimitiveTag.__qualname__ = classname
    _IntPrimitiveTag.__doc__ = \
        """
        Represents a {0:}.
        {0:} is an int subclass and generally works the same way and in the same places as an int would.
        """.format( classname )
    return _IntPrimitiveTag

class _BaseTag:
    """Base class for all tag classes."""
    tagType = -1

    #True for TAG_Byte, TAG_Short, TAG_Int and TAG_Long
    isIntegral = False

    __slots__ = ()

    def _w( self, o ):
        """Write this tag's payload to the given writable file-like object, o."""
        raise NotImplementedError()

class _BaseIntTag( int, _BaseTag ):
    """
    Base class for all primitive integer tags (TAG_Byte, TAG_Short, TAG_Int, TAG_Long).
    min and max are the bounds (inclusive) of the range of values the primitive can represent.
    """
    isIntegral = True

    __slots__ = ()

    min =  1
    max = -1

    def __repr__( self ):
        return "{}({})".format( self.__class__.__name__, _int_repr( self ) )

TAG_Byte  = _makeIntPrimitiveClass( "TAG_Byte",  TAG_BYTE,                  -128,                 127, _rb, _wb )
TAG_Short = _makeIntPrimitiveClass( "TAG_Short", TAG_SHORT,               -32768,               32767, _rs, _ws )
TAG_Int   = _makeIntPrimitiveClass( "TAG_Int",   TAG_INT,            -2147483648,          2147483647, _ri, _wi )
TAG_Long  = _makeIntPrimitiveClass( "TAG_Long",  TAG_LONG,  -9223372036854775808, 9223372036854775807, _rl, _wl )

class TAG_Float( float, _BaseTag ):
    """Represents a TAG_Float."""
    tagType = TAG_FLOAT
    __slots__ = ()
    def __repr__( self ):
        return "TAG_Float({})".format( _float_repr( self ) )
    @staticmethod
    def _r( i ):
        return TAG_Float( _rf( i ) )
    _w = _wf

class TAG_Double( float, _BaseTag ):
    """Represents a TAG_Double."""
    tagType = TAG_DOUBLE
    __slots__ = ()
    def __repr__( self ):
        return "TAG_Double({})".format( _float_repr( self ) )
    @staticmethod
    def _r( i ):
        return TAG_Double( _rd( i ) )
    _w = _wd

class TAG_Byte_Array( bytearray, _BaseTag ):
    """
    Represents a TAG_Byte_Array.
    TAG_Byte_Array is a bytearray subclass; values are unsigned, in the range [0,255].
    To go from an unsigned byte to the signed value the format stores:
        sbyte = ubyte if ubyte < 128 else ubyte - 256
    """
    tagType = TAG_BYTE_ARRAY

    __slots__ = ()

    def __repr__( self ):
        return "TAG_Byte_Array([{:d} bytes])".format( len( self ) )
    @staticmethod
    def _r( i ):
        return TAG_Byte_Array( _r( i, _rah( i ) ) )
    _w = _wba

class TAG_String( str, _BaseTag ):
    """Represents a TAG_String."""
    tagType = TAG_STRING
    __slots__ = ()
    def __repr__( self ):
        return "TAG_String({})".format( _str_repr( self ) )
    @staticmethod
    def _r( i ):
        return TAG_String( _rst( i ) )
    _w = _wst

class TAG_Int_Array( array, _BaseTag ):
    """Represents a TAG_Int_Array; an array of signed 4-byte integers."""
    tagType = TAG_INT_ARRAY

    __slots__ = ()

    #array implements __new__ rather than __init__
    def __new__( cls, *args ):
        return _array_new( cls, SIGNED_INT_TYPE, *args )

    def __repr__( self ):
        return "TAG_Int_Array({})".format( list( self ) )
    @staticmethod
    def _r( i ):
        return TAG_Int_Array( _ris( i, _rah( i ) ) )
    def _w( self, o ):
        _wia( self, o )

class TAG_List( list, _BaseTag ):
    """
    Represents a TAG_List.
    All entries of a TAG_List share one tag type, listTagType. An empty list usually declares TAG_END.
    """
    tagType = TAG_LIST

    __slots__ = "listTagType"

    def __init__( self, iterable=(), listTagType=None ):
        """
        iterable provides the entries; each must already be a tag.
        listTagType is the tag class of the entries (e.g. TAG_Compound).
            If None, it is taken from the first entry (TAG_END for an empty list).
        Raises WrongTagError if an entry's type differs from listTagType.

        Example:
            sections = TAG_List( ( section0, section1 ), TAG_Compound )
        """
        super().__init__( iterable )
        if listTagType is not None:
            tt = listTagType.tagType
        elif len( self ) > 0:
            tt = self[0].tagType
        else:
            tt = TAG_END
        _avtt( tt )
        for t in self:
            if t.tagType != tt:
                raise WrongTagError( tt, t.tagType )
        self.listTagType = tt

    def __repr__( self ):
        return "TAG_List({}, {})".format( TAG_NAMES[ self.listTagType ], list.__repr__( self ) )

    def isListOf( self, tagType ):
        """
        Returns True if this list may be read as a list of the given tagType.
        An empty list qualifies regardless of its declared type.
        """
        return len( self ) == 0 or self.listTagType == tagType

    @staticmethod
    def _r( i, depth=0 ):
        if depth > MAX_DEPTH:
            raise NBTFormatError( "Tags are nested more than {:d} levels deep.".format( MAX_DEPTH ) )
        #The element type is validated by _rlh before any element is read as that type.
        t, l = _rlh( i )
        tag = TAG_List()
        tag.listTagType = t
        if l > 0:
            r = _TAGCLASS[ t ]._r
            a = tag.append
            if t == TAG_LIST or t == TAG_COMPOUND:
                for _ in range( l ):
                    a( r( i, depth + 1 ) )
            else:
                for _ in range( l ):
                    a( r( i ) )
        return tag

    def _w( self, o ):
        _wlh( self.listTagType, len( self ), o )
        for t in self:
            t._w( o )

class TAG_Compound( OrderedDict, _BaseTag ):
    """
    Represents a TAG_Compound.
    TAG_Compound is an OrderedDict subclass mapping str names to tags, in the order they were stored.
    """
    tagType = TAG_COMPOUND

    __slots__ = ()

    def getTyped( self, name, tagType, default=None ):
        """
        Returns the tag with the given name if it exists and is of the given tagType.
        Otherwise, returns default.
        """
        t = self.get( name )
        if t is None or t.tagType != tagType:
            return default
        return t

    @staticmethod
    def _r( i, depth=0 ):
        if depth > MAX_DEPTH:
            raise NBTFormatError( "Tags are nested more than {:d} levels deep.".format( MAX_DEPTH ) )
        tag = TAG_Compound()
        si = super( TAG_Compound, tag ).__setitem__

        tt = _rb( i )
        while tt != TAG_END:
            _avtt( tt )

            #Now that we know the tag isn't TAG_END, read the name and check that there isn't already a tag with that name
            name = _rst( i )
            if name in tag:
                raise DuplicateNameError( name )

            #Nested lists and compounds are read one level deeper
            if tt == TAG_LIST or tt == TAG_COMPOUND:
                si( name, _TAGCLASS[tt]._r( i, depth + 1 ) )
            else:
                si( name, _TAGCLASS[tt]._r( i ) )
            tt = _rb( i )

        return tag

    def _w( self, o ):
        for n,t in self.items():
            _wtn( t.tagType, n, o )
            t._w( o )
        o.write( b"\0" )

class NBTDocument( TAG_Compound ):
    """
    Represents an NBT document.

    An NBTDocument is a named TAG_Compound that serves as the root tag of the NBT tree.
    For chunk payloads the name is simply the empty string, "".
    """
    __slots__ = ( "name", )

    def __init__( self, name="", *args, **kwargs ):
        super().__init__( *args, **kwargs )
        self.name = name

    def write( self, o ):
        """Writes this document, uncompressed, to the writable file-like object o."""
        _wtn( TAG_COMPOUND, self.name, o )
        TAG_Compound._w( self, o )

    def __repr__( self ):
        return "NBTDocument({!r}, {})".format( self.name, dict.__repr__( self ) )

    @staticmethod
    def _r( i ):
        name = _retn( i, TAG_COMPOUND )
        doc = NBTDocument( name )
        doc.update( TAG_Compound._r( i ) )
        return doc

#Tuple of tag classes indexed by tagType.
_TAGCLASS = (
    None,           #TAG_END
    TAG_Byte,       #TAG_BYTE
    TAG_Short,      #TAG_SHORT
    TAG_Int,        #TAG_INT
    TAG_Long,       #TAG_LONG
    TAG_Float,      #TAG_FLOAT
    TAG_Double,     #TAG_DOUBLE
    TAG_Byte_Array, #TAG_BYTE_ARRAY
    TAG_String,     #TAG_STRING
    TAG_List,       #TAG_LIST
    TAG_Compound,   #TAG_COMPOUND
    TAG_Int_Array   #TAG_INT_ARRAY
)

def read( source ):
    """
    Parses an NBT document from source, a readable file-like object containing uncompressed NBT data, and returns an NBTDocument.
    Raises a DecodeError (or subclass) if the document is truncated or malformed.
    """
    return NBTDocument._r( source )

def decompress( payload, compression ):
    """
    Inflates a chunk payload stored with the given compression type (COMPRESSION_* enum).
    Raises CompressionError for unknown types and corrupt streams.
    """
    try:
        if compression == COMPRESSION_ZLIB:
            return zlib.decompress( payload )
        elif compression == COMPRESSION_GZIP:
            return gzip.decompress( payload )
        elif compression == COMPRESSION_NONE:
            return payload
    except ( zlib.error, OSError, EOFError ) as e:
        raise CompressionError( "Corrupt compressed payload: {}".format( e ) ) from e
    raise CompressionError( "Unrecognized compression type: {:d}.".format( compression ) )

def decodeChunk( stream ):
    """
    Decodes a chunk payload as stored in a region file and returns its root NBTDocument.

    stream is a readable file-like object positioned at the chunk's 5-byte header:
        * a 4-byte big-endian length (counting the compression byte and the payload),
        * a 1-byte compression type (1 = gzip, 2 = zlib, 3 = uncompressed),
    followed by the compressed NBT document.

    Raises a DecodeError (or subclass) if the stream is truncated, the compression header is invalid,
    or the inflated bytes aren't a well-formed NBT document.
    """
    length, compression = _rch( stream )
    if length < 1:
        raise NBTFormatError( "Chunk payload has invalid length {:d}.".format( length ) )
    data = decompress( _r( stream, length - 1 ), compression )

    source = BytesIO( data )
    doc = read( source )
    if source.tell() != len( data ):
        raise NBTFormatError( "{:d} trailing bytes after the root tag.".format( len( data ) - source.tell() ) )
    return doc

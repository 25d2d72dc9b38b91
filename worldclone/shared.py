import sys
from struct import calcsize, Struct
from array import array

from mutf8 import encode_modified_utf8, decode_modified_utf8

#Tag Types
#A TAG_End is a nameless tag that terminates TAG_Compound and is the tagType declared by an empty TAG_List.
TAG_END        = 0
TAG_BYTE       = 1  #1-byte signed integer.
TAG_SHORT      = 2  #2-byte big-endian signed integer.
TAG_INT        = 3  #4-byte big-endian signed integer.
TAG_LONG       = 4  #8-byte big-endian signed integer.
TAG_FLOAT      = 5  #Big-endian binary32.
TAG_DOUBLE     = 6  #Big-endian binary64.
TAG_BYTE_ARRAY = 7  #4-byte length, followed by exactly that many bytes.
TAG_STRING     = 8  #2-byte length in bytes, followed by that many bytes of (modified) UTF-8.
TAG_LIST       = 9  #1-byte element tagType, 4-byte length, followed by that many payloads of the element tag.
TAG_COMPOUND   = 10 #Named tag headers + payloads, terminated by a TAG_End (null byte).
TAG_INT_ARRAY  = 11 #4-byte length, followed by that many 4-byte big-endian signed integers.

TAG_NAMES = (
    "TAG_End",
    "TAG_Byte",
    "TAG_Short",
    "TAG_Int",
    "TAG_Long",
    "TAG_Float",
    "TAG_Double",
    "TAG_Byte_Array",
    "TAG_String",
    "TAG_List",
    "TAG_Compound",
    "TAG_Int_Array"
)

#Total number of tags understood by the decoder.
TAG_COUNT = len( TAG_NAMES )

#Chunk payload compression types, as stored in the 5-byte chunk header of a region file.
COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3

#Deepest nesting of TAG_Lists and TAG_Compounds a document may have, as enforced by Minecraft's own reader.
MAX_DEPTH = 512

#array typecodes are platform-sized; we need 4-byte integers for header tables and int arrays.
if calcsize( "i" ) == 4:
    SIGNED_INT_TYPE   = "i"
    UNSIGNED_INT_TYPE = "I"
elif calcsize( "l" ) == 4:
    SIGNED_INT_TYPE   = "l"
    UNSIGNED_INT_TYPE = "L"
else:
    raise OSError( "No 4-byte datatype available." )

_LITTLE = sys.byteorder == "little"

#Structs
_NT = Struct( ">bh"                   )     #Named tag info
_TL = Struct( ">b" + SIGNED_INT_TYPE  )     #Tag list info
_CH = Struct( ">" + UNSIGNED_INT_TYPE + "B" ) #Chunk header (length, compression)
_B  = Struct( ">b"                    )     #Signed byte (1 byte)
_S  = Struct( ">h"                    )     #Signed big-endian short (2 bytes)
_I  = Struct( ">" + SIGNED_INT_TYPE   )     #Signed big-endian int (4 bytes)
_L  = Struct( ">q"                    )     #Signed big-endian long (8 bytes)
_F  = Struct( ">f"                    )     #Big-endian float (4 bytes)
_D  = Struct( ">d"                    )     #Big-endian double (8 bytes)
_UI = Struct( ">" + UNSIGNED_INT_TYPE )     #Unsigned big-endian int (4 bytes)

class DecodeError( Exception ):
    """
    Base class for every malformed-data condition met while turning stored bytes into chunk data.
    Decode errors are recoverable: the affected chunk (or field of a chunk) falls back to a default.
    """
    def __str__( self ):
        return str( self.args[0] ) if self.args else self.__class__.__name__

class NBTFormatError( DecodeError ):
    """This exception is raised when parsing data that violates the NBT grammar."""
    pass

class WrongTagError( NBTFormatError ):
    """
    WrongTagError( expected, given )

    This exception is raised when the root tag of an NBT document is not a TAG_Compound,
    or when a tag (or the declared element type of a TAG_List) isn't the type a reader expects.
    """
    def __str__( self ):
        return "Expected {}, but received {} instead.".format( describeTag( self.args[0] ), describeTag( self.args[1] ) )

class DuplicateNameError( NBTFormatError ):
    """
    DuplicateNameError( name )

    This exception is raised when multiple tags with the same name are parsed from the same TAG_Compound.
    """
    def __str__( self ):
        return "There is already a tag with the name \"{}\" in this TAG_Compound.".format( self.args[0] )

class UnknownTagTypeError( NBTFormatError ):
    """
    UnknownTagTypeError( tagType )

    This exception is raised when a tag with an invalid or unrecognized type is parsed.
    """
    def __str__( self ):
        return "Unknown or unsupported tag type: {:d}".format( self.args[0] )

class OutOfBoundsError( NBTFormatError ):
    """
    OutOfBoundsError( value, min, max )

    This exception is raised when a length or count read from the stream is outside of the valid range for that type.
    """
    def __str__( self ):
        return "Value {:d} is outside of expected range [{:d},{:d}].".format( *self.args )

class TruncatedDataError( DecodeError, EOFError ):
    """This exception is raised when the end of a stream is reached before a value could be read in full."""
    pass

class CompressionError( DecodeError ):
    """
    CompressionError( message )

    This exception is raised when a chunk payload declares an unknown compression type, or when its compressed bytes can't be inflated.
    """
    pass

class RegionFormatError( DecodeError ):
    """
    RegionFormatError( message )

    This exception is raised when a region file's location table points somewhere a chunk can't be,
    e.g. inside the header, past the end of the file, or at a payload larger than its allocated sectors.
    """
    pass

class SectionFormatError( DecodeError ):
    """
    SectionFormatError( message )

    This exception is raised when a chunk section lacks its Y index or stores block arrays of the wrong size.
    """
    pass

class BiomeLengthError( DecodeError ):
    """
    BiomeLengthError( length )

    This exception is raised when a chunk's Biomes array doesn't have exactly 256 entries.
    """
    def __str__( self ):
        return "Expected 256 biome IDs, but received {:d} instead.".format( self.args[0] )

class SourceWorldError( Exception ):
    """
    SourceWorldError( message )

    This exception is raised when the source world directory (or its region directory) doesn't exist.
    Unlike DecodeError, this is fatal: there is nothing to clone from.
    """
    pass

def describeTag( tagType ):
    """
    Returns a short description of a tag with the given tagType, including the internal name and numeric type (e.g. TAG_Compound (10) ).
    If tagType does not represent a valid tag, returns "Unknown (<tagType>)".
    """
    if tagType < 0 or tagType >= TAG_COUNT:
        return "Unknown ({:d})".format( tagType )
    return "{} ({:d})".format( TAG_NAMES[tagType], tagType )

#_avtt
def assertValidTagType( tagType ):
    """Raises UnknownTagTypeError if the given tagType is unrecognized"""
    if tagType < 0 or tagType >= TAG_COUNT:
        raise UnknownTagTypeError( tagType )

#_r
def read( i, n ):
    """
    Reads n bytes from i (a readable file-like object).
    Raises a TruncatedDataError if the end-of-file is encountered before n bytes can be read.
    """
    b = i.read( n )
    if len( b ) != n:
        raise TruncatedDataError( "End of stream reached prematurely; wanted {:d} bytes, got {:d}.".format( n, len( b ) ) )
    return b

def decodeString( b ):
    """
    Decodes the bytes of a tag name or TAG_String.
    Strings are stored in Java's modified UTF-8: NUL is written as C0 80, and characters outside of the BMP as a pair of 3-byte surrogates.
    Undecodable bytes are an NBTFormatError.
    """
    try:
        return decode_modified_utf8( b )
    #A sequence cut short at the end of the string can surface as an IndexError rather than a UnicodeDecodeError.
    except ( ValueError, IndexError ) as e:
        raise NBTFormatError( "Invalid string data: {}".format( e ) ) from e

#_rtn
def readTagName( i ):
    """
    Reads a named tag header.
    Returns a tuple, ( tagType, name ).
    """
    tagType, length = _NT.unpack( read( i, 3 ) )
    if length < 0:
        raise OutOfBoundsError( length, 0, 32767 )
    return ( tagType, decodeString( read( i, length ) ) )

#_retn
def readExpectedTagName( i, expected ):
    """
    Reads a named tag header and asserts that the tagType we read matches the given tagType, expected.
    Returns the name of the tag.
    """
    tagType, name = readTagName( i )
    if tagType != expected:
        raise WrongTagError( expected, tagType )
    return name

#_wtn
def writeTagName( tagType, name, o ):
    """Writes a named tag header."""
    b = encode_modified_utf8( name )
    o.write( _NT.pack( tagType, len( b ) ) )
    o.write( b )

#_rb
def readByte( i ):
    """Reads a TAG_Byte payload."""
    return _B.unpack( read( i, 1 ) )[0]
#_wb
def writeByte( v, o ):
    """Writes a TAG_Byte payload."""
    o.write( _B.pack( v ) )

def readShort( i ):
    return _S.unpack( read( i, 2 ) )[0]
def writeShort( v, o ):
    o.write( _S.pack( v ) )

def readInt( i ):
    return _I.unpack( read( i, 4 ) )[0]
def writeInt( v, o ):
    o.write( _I.pack( v ) )

def readLong( i ):
    return _L.unpack( read( i, 8 ) )[0]
def writeLong( v, o ):
    o.write( _L.pack( v ) )

def readFloat( i ):
    return _F.unpack( read( i, 4 ) )[0]
def writeFloat( v, o ):
    o.write( _F.pack( v ) )

def readDouble( i ):
    return _D.unpack( read( i, 8 ) )[0]
def writeDouble( v, o ):
    o.write( _D.pack( v ) )

#_rst
def readString( i ):
    """Reads a TAG_String payload."""
    l = _S.unpack( read( i, 2 ) )[0]
    if l < 0:
        raise OutOfBoundsError( l, 0, 32767 )
    return decodeString( read( i, l ) )

#_wst
def writeString( v, o ):
    """Writes a TAG_String payload."""
    v = encode_modified_utf8( v )
    o.write( _S.pack( len( v ) ) )
    o.write( v )

#_rlh
def readTagListHeader( i ):
    """
    Reads a TAG_List header.

    Returns a tuple ( tagType, length ).
    Raises UnknownTagTypeError if tagType is unknown.
    Raises OutOfBoundsError if the length of the list is negative.
    Raises WrongTagError if a non-empty list declares TAG_End as its element type.
    """
    tagType, length = _TL.unpack( read( i, 5 ) )
    assertValidTagType( tagType )
    if length < 0:
        raise OutOfBoundsError( length, 0, 2147483647 )
    if tagType == TAG_END and length > 0:
        raise WrongTagError( TAG_COMPOUND, TAG_END )
    return tagType, length

#_wlh
def writeTagListHeader( t, l, o ):
    """Writes a TAG_List header."""
    o.write( _TL.pack( t, l ) )

#_rah
def readArrayHeader( i ):
    """
    Reads a TAG_Byte_Array or TAG_Int_Array header.
    Returns the length (in bytes and ints, respectively) of the array.
    """
    l = _I.unpack( read( i, 4 ) )[0]
    if l < 0:
        raise OutOfBoundsError( l, 0, 2147483647 )
    return l

#_wba
def writeByteArray( v, o ):
    """Writes a TAG_Byte_Array payload."""
    o.write( _I.pack( len( v ) ) )
    o.write( v )

#_rch
def readChunkHeader( i ):
    """
    Reads the 5-byte header that precedes a chunk payload in a region file.
    Returns a tuple ( length, compression ); length counts the compression byte.
    """
    return _CH.unpack( read( i, 5 ) )

def writeChunkHeader( length, compression, o ):
    o.write( _CH.pack( length, compression ) )

#array assumes native-endianness; big-endian data read on little-endian systems must be byteswapped.
#_ruis
def readUnsignedInts( i, n ):
    """Reads n unsigned, big-endian, 4-byte integers from i into an array and returns it."""
    a = array( UNSIGNED_INT_TYPE )
    a.frombytes( read( i, 4*n ) )
    if _LITTLE:
        a.byteswap()
    return a

#_ris
def readInts( i, n ):
    """Reads n signed, big-endian, 4-byte integers from i into an array and returns it."""
    a = array( SIGNED_INT_TYPE )
    a.frombytes( read( i, 4*n ) )
    if _LITTLE:
        a.byteswap()
    return a

#_wia
def writeIntArray( v, o ):
    """Writes a TAG_Int_Array payload."""
    o.write( _I.pack( len( v ) ) )
    a = array( SIGNED_INT_TYPE, v )
    if _LITTLE:
        a.byteswap()
    o.write( a.tobytes() )

def writeUnsignedInts( v, o ):
    """Writes the given unsigned ints as big-endian, 4-byte integers."""
    a = array( UNSIGNED_INT_TYPE, v )
    if _LITTLE:
        a.byteswap()
    o.write( a.tobytes() )

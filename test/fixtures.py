#Helpers that build synthetic chunks, region files and worlds for the tests.

import os
import gzip
import struct
import zlib

from io import BytesIO

from worldclone import NBTDocument, TAG_Compound, TAG_List, TAG_Byte, TAG_Byte_Array, TAG_Int, TAG_String
from worldclone.shared import writeChunkHeader, writeUnsignedInts, COMPRESSION_GZIP, COMPRESSION_ZLIB, TAG_END, TAG_LIST

SECTOR_SIZE = 4096

def packNibbles( values ):
    """Packs 4096 values into 2048 bytes, two nibbles per byte, low nibble first."""
    out = bytearray( len( values ) // 2 )
    for i in range( 0, len( values ), 2 ):
        out[i // 2] = ( values[i] & 0x0F ) | ( ( values[i + 1] & 0x0F ) << 4 )
    return out

def makeSection( y, blocks, data, add=None ):
    """
    Returns a section TAG_Compound.
    blocks is 4096 byte values, data and add are 4096 nibble values each (add may be None).
    """
    section = TAG_Compound()
    section["Y"]      = TAG_Byte( y )
    section["Blocks"] = TAG_Byte_Array( bytes( blocks ) )
    if add is not None:
        section["Add"] = TAG_Byte_Array( packNibbles( add ) )
    section["Data"]   = TAG_Byte_Array( packNibbles( data ) )
    return section

def makeTileEntity( id, x, y, z, **extra ):
    te = TAG_Compound()
    te["id"] = TAG_String( id )
    te["x"]  = TAG_Int( x )
    te["y"]  = TAG_Int( y )
    te["z"]  = TAG_Int( z )
    for name, value in extra.items():
        te[name] = value
    return te

def makeChunk( sections=(), biomes=None, tileEntities=None, level=True ):
    """
    Returns the root NBTDocument of a chunk.
    biomes defaults to 256 plains; pass False to leave the Biomes array out.
    tileEntities is a list of TAG_Compounds, or None to leave the TileEntities list out.
    """
    root = NBTDocument()
    if not level:
        root["DataVersion"] = TAG_Int( 1343 )
        return root

    lvl = TAG_Compound()
    lvl["xPos"] = TAG_Int( 0 )
    lvl["zPos"] = TAG_Int( 0 )
    if sections is not None:
        lvl["Sections"] = TAG_List( list( sections ), TAG_Compound )
    if biomes is None:
        biomes = bytes( [ 1 ] * 256 )
    if biomes is not False:
        lvl["Biomes"] = TAG_Byte_Array( biomes )
    if tileEntities is not None:
        lvl["TileEntities"] = TAG_List( list( tileEntities ), TAG_Compound )
    root["Level"] = lvl
    return root

def nestedLists( name, count ):
    """
    Returns the bytes of a named TAG_List nested count levels deep:
    each list holds a single list, except the innermost one, which is empty.
    """
    encodedName = name.encode()
    head = struct.pack( ">bh", TAG_LIST, len( encodedName ) ) + encodedName
    return head + struct.pack( ">bi", TAG_LIST, 1 ) * ( count - 1 ) + struct.pack( ">bi", TAG_END, 0 )

def encodeDocument( doc ):
    o = BytesIO()
    doc.write( o )
    return o.getvalue()

def encodeChunk( doc, compression=COMPRESSION_ZLIB ):
    """Returns the bytes a region file stores for a chunk: 5-byte header + compressed document."""
    raw = doc if isinstance( doc, ( bytes, bytearray ) ) else encodeDocument( doc )
    if compression == COMPRESSION_ZLIB:
        payload = zlib.compress( raw )
    elif compression == COMPRESSION_GZIP:
        payload = gzip.compress( raw )
    else:
        #COMPRESSION_NONE, or a bogus type under test
        payload = raw
    o = BytesIO()
    writeChunkHeader( len( payload ) + 1, compression, o )
    o.write( payload )
    return o.getvalue()

def writeRegion( path, chunks, timestamps=None, locations=None ):
    """
    Writes a region file.
    chunks maps region-local coordinates (lx, lz) to an NBTDocument or to already encoded chunk bytes (see encodeChunk()).
    timestamps optionally maps (lx, lz) to a timestamp.
    locations optionally maps (lx, lz) to raw location entries, overriding the computed ones.
    """
    locs = [ 0 ] * 1024
    stamps = [ 0 ] * 1024
    body = BytesIO()
    sector = 2
    for ( lx, lz ), chunk in chunks.items():
        data = chunk if isinstance( chunk, ( bytes, bytearray ) ) else encodeChunk( chunk )
        count = ( len( data ) + SECTOR_SIZE - 1 ) // SECTOR_SIZE
        body.write( data )
        body.write( bytes( count * SECTOR_SIZE - len( data ) ) )
        locs[ lx + 32 * lz ] = sector << 8 | count
        sector += count
    for ( lx, lz ), ts in ( timestamps or {} ).items():
        stamps[ lx + 32 * lz ] = ts
    for ( lx, lz ), loc in ( locations or {} ).items():
        locs[ lx + 32 * lz ] = loc

    with open( path, "wb" ) as file:
        writeUnsignedInts( locs, file )
        writeUnsignedInts( stamps, file )
        file.write( body.getvalue() )
    return path

def makeWorld( root, chunks, name="world_original" ):
    """
    Creates a world directory under root and returns its path.
    chunks maps absolute chunk coordinates (cx, cz) to an NBTDocument or encoded chunk bytes;
    they are written to the region files that own them.
    """
    world = os.path.join( root, name )
    folder = os.path.join( world, "region" )
    os.makedirs( folder, exist_ok=True )

    regions = {}
    for ( cx, cz ), chunk in chunks.items():
        regions.setdefault( ( cx >> 5, cz >> 5 ), {} )[ cx & 31, cz & 31 ] = chunk
    for ( rx, rz ), content in regions.items():
        writeRegion( os.path.join( folder, "r.{:d}.{:d}.mca".format( rx, rz ) ), content )
    return world

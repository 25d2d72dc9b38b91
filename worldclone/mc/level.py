#This module extracts the parts of an Anvil chunk that a world clone needs: blocks, biomes and tile entities.
#
#An Anvil chunk is a 16x256x16 block column, stored as a sparse list of up to 16 sections of 16x16x16 blocks.
#Within a section, block arrays are indexed in YZX order:
#    index = 256*y + 16*z + x
#    x = index & 15, z = (index >> 4) & 15, y = (index >> 8) & 15
#Each section stores:
#    Y:      TAG_Byte,       the section's index in the column (section base Y = Y << 4)
#    Blocks: TAG_Byte_Array, 4096 bytes, the low 8 bits of each block ID
#    Add:    TAG_Byte_Array, 2048 bytes, optional, the high 4 bits of each block ID as nibbles
#    Data:   TAG_Byte_Array, 2048 bytes, each block's 4-bit data value as nibbles
#Biomes is a 256 byte TAG_Byte_Array of biome IDs in ZX order (index = 16*z + x).
#
#Read more about the format here:
#    http://minecraft.gamepedia.com/Chunk_format

from worldclone.coords      import CoordXZ
from worldclone.diagnostics import LoggingDiagnosticSink
from worldclone.mc.region   import FMT_FILENAME
from worldclone.shared      import (
    DecodeError, SectionFormatError, BiomeLengthError, WrongTagError,
    TAG_BYTE, TAG_BYTE_ARRAY, TAG_LIST, TAG_COMPOUND
)
from worldclone.tag import decodeChunk

SECTION_VOLUME = 4096
NIBBLE_BYTES   = SECTION_VOLUME // 2
BIOME_COUNT    = 256

#Returns the nibble (a 4-bit value in the range [0,15]) in the given byte array, b, at the given nibble index, i.
#Nibbles are packed low-first:
#    Byte index:        0        1
#                   uuuullll uuuullll  ...
#    Nibble index:    1   0    3   2
def getNibble( b, i ):
    return ( b[i >> 1] & 0x0F ) if ( i & 1 ) == 0 else ( b[i >> 1] >> 4 )

def sectionIndex( x, y, z ):
    """Returns the index of section-relative block coordinates (x, y, z) within a section's block arrays."""
    return ( y << 8 ) | ( z << 4 ) | x

def _getArray( section, name, length, required=True ):
    t = section.get( name )
    if t is None:
        if required:
            raise SectionFormatError( "Section has no '{}' array.".format( name ) )
        return None
    if t.tagType != TAG_BYTE_ARRAY:
        raise WrongTagError( TAG_BYTE_ARRAY, t.tagType )
    if len( t ) != length:
        raise SectionFormatError( "Section '{}' array has {:d} bytes, expected {:d}.".format( name, len( t ), length ) )
    return t

def iterSectionBlocks( section ):
    """
    Generator that decodes a section compound.
    For every one of the section's 4096 blocks, yields a tuple ( x, y, z, id, data ), where
        x, y and z are coordinates relative to the chunk (y includes the section's base Y),
        id is the 12-bit block ID: Add nibble << 8 | Blocks byte (the Add nibble is 0 when Add is missing),
        data is the block's 4-bit data value.
    Raises SectionFormatError (or WrongTagError) if the section lacks its Y index or stores arrays of the wrong size.
    """
    y = section.get( "Y" )
    if y is None or y.tagType != TAG_BYTE:
        raise SectionFormatError( "Section has no 'Y' byte." )
    baseY  = y << 4
    blocks = _getArray( section, "Blocks", SECTION_VOLUME )
    data   = _getArray( section, "Data",   NIBBLE_BYTES   )
    add    = _getArray( section, "Add",    NIBBLE_BYTES, False )

    for i in range( SECTION_VOLUME ):
        extra = 0 if add is None else getNibble( add, i )
        yield (
            i & 15,
            baseY + ( ( i >> 8 ) & 15 ),
            ( i >> 4 ) & 15,
            extra << 8 | ( blocks[i] & 0xFF ),
            getNibble( data, i ) & 0x0F
        )

class ChunkLevelExtractor:
    """
    Finds a chunk in the source world's region files, decodes it, and pulls block, biome and tile entity data out of it.

    Absent data (missing region file, unwritten chunk slot, missing keys) produces None or empty output.
    Malformed data is reported to the diagnostic sink and degraded to None for the affected field only.
    """
    __slots__ = ( "regions", "sink" )

    def __init__( self, regions, sink=None ):
        """
        regions is the RegionFileCache for the source world's region directory.
        sink is the DiagnosticSink anomalies are reported to.
        """
        self.regions = regions
        self.sink    = sink if sink is not None else LoggingDiagnosticSink()

    def extractLevel( self, chunkXZ ):
        """
        Returns the "Level" TAG_Compound of the chunk at chunk coordinates chunkXZ, or None if it can't be found or read.
        """
        chunkXZ = CoordXZ( *chunkXZ )
        rx, rz = chunkXZ.toRegion()
        lx, lz = chunkXZ.toLocal()
        name = FMT_FILENAME.format( rx, rz )

        try:
            with self.regions.open( rx, rz ) as region:
                if region is None:
                    return None
                stream = region.readChunkStream( lx, lz )
        except DecodeError as e:
            self.sink.reportIssue( "Region {} has an invalid location for chunk {:d}, {:d}".format( name, chunkXZ.x, chunkXZ.z ), e )
            return None
        except OSError as e:
            self.sink.reportIssue( "Couldn't read chunk {:d}, {:d} from region {}".format( chunkXZ.x, chunkXZ.z, name ), e )
            return None

        if stream is None:
            return None

        try:
            root = decodeChunk( stream )
        except DecodeError as e:
            self.sink.reportIssue( "Region {} has invalid NBT for chunk {:d}, {:d}".format( name, chunkXZ.x, chunkXZ.z ), e )
            return None

        level = root.getTyped( "Level", TAG_COMPOUND )
        if level is None:
            self.sink.reportIssue( "Region {} has no 'Level' NBT for chunk {:d}, {:d}".format( name, chunkXZ.x, chunkXZ.z ) )
        return level

    def _getCompoundList( self, level, name, chunkXZ ):
        #Returns the named TAG_List of TAG_Compounds, or None if it's missing or holds something else.
        t = level.get( name )
        if t is None:
            return None
        if t.tagType != TAG_LIST:
            self.sink.reportIssue( "Chunk {:d}, {:d} 'Level' NBT has '{}' NBT of the wrong type".format( chunkXZ.x, chunkXZ.z, name ), WrongTagError( TAG_LIST, t.tagType ) )
            return None
        if not t.isListOf( TAG_COMPOUND ):
            self.sink.reportIssue( "Chunk {:d}, {:d} 'Level' NBT has '{}' NBT with the wrong element type".format( chunkXZ.x, chunkXZ.z, name ), WrongTagError( TAG_COMPOUND, t.listTagType ) )
            return None
        return t

    def extractBlocks( self, level, blocks, chunkXZ=( 0, 0 ) ):
        """
        Writes every block of every section in level into blocks, by calling blocks.setBlock( x, y, z, id, data ).
        chunkXZ is only used to describe the chunk in reports.

        Returns the number of sections written, or None if level has no usable "Sections" list.
        Sections that fail to decode are reported and skipped; the others are still written.
        """
        chunkXZ = CoordXZ( *chunkXZ )
        sections = self._getCompoundList( level, "Sections", chunkXZ )
        if sections is None:
            if "Sections" not in level:
                self.sink.reportIssue( "Chunk {:d}, {:d} 'Level' NBT has no 'Sections' NBT".format( chunkXZ.x, chunkXZ.z ) )
            return None

        setBlock = blocks.setBlock
        written = 0
        for n, section in enumerate( sections ):
            try:
                #Decode the whole section first so a malformed section writes nothing.
                decoded = list( iterSectionBlocks( section ) )
            except DecodeError as e:
                self.sink.reportIssue( "Chunk {:d}, {:d} has an invalid section at index {:d}".format( chunkXZ.x, chunkXZ.z, n ), e )
                continue
            for x, y, z, id, data in decoded:
                setBlock( x, y, z, id, data )
            written += 1
        return written

    def extractBiomes( self, level ):
        """
        Returns level's biome IDs as a bytes object of 256 unsigned values in ZX order (index = 16*z + x).
        Returns None if level has no "Biomes" array.
        Raises BiomeLengthError if the array doesn't have exactly 256 entries, and WrongTagError if "Biomes" isn't a TAG_Byte_Array.
        """
        biomes = level.get( "Biomes" )
        if biomes is None:
            return None
        if biomes.tagType != TAG_BYTE_ARRAY:
            raise WrongTagError( TAG_BYTE_ARRAY, biomes.tagType )
        if len( biomes ) != BIOME_COUNT:
            raise BiomeLengthError( len( biomes ) )
        return bytes( biomes )

    def extractBlocksAndBiomes( self, level, blocks, chunkXZ=( 0, 0 ) ):
        """
        Writes level's blocks into blocks (see extractBlocks()) and returns its biome IDs (see extractBiomes()).
        Missing or malformed biomes are reported and None is returned in their place; blocks are written regardless.
        """
        chunkXZ = CoordXZ( *chunkXZ )
        self.extractBlocks( level, blocks, chunkXZ )
        try:
            biomes = self.extractBiomes( level )
        except DecodeError as e:
            self.sink.reportIssue( "Chunk {:d}, {:d} 'Level' NBT has an invalid 'Biomes' NBT".format( chunkXZ.x, chunkXZ.z ), e )
            return None
        if biomes is None:
            self.sink.reportIssue( "Chunk {:d}, {:d} 'Level' NBT has no 'Biomes' NBT".format( chunkXZ.x, chunkXZ.z ) )
        return biomes

    def extractTileEntities( self, level, chunkXZ=( 0, 0 ) ):
        """
        Returns level's "TileEntities" TAG_List of TAG_Compounds, or None if there isn't one.
        Individual tile entities are passed through as they are; making sense of them is up to the host.
        """
        return self._getCompoundList( level, "TileEntities", CoordXZ( *chunkXZ ) )

    def __repr__( self ):
        return "ChunkLevelExtractor({!r})".format( self.regions )

#In-memory block and biome grids for a single chunk column.
#These are the sinks ChunkAssembler.fillChunk() writes into. A host may pass its own objects instead,
#as long as they implement setBlock( x, y, z, id, data ) and setBiome( x, z, id ) respectively.

from array import array

CHUNK_WIDTH  = 16
CHUNK_HEIGHT = 256
CHUNK_VOLUME = CHUNK_WIDTH * CHUNK_HEIGHT * CHUNK_WIDTH

AIR = 0

#Biome IDs
BIOME_OCEAN  = 0
BIOME_PLAINS = 1
#Stored in place of a biome ID for columns whose biome hasn't been computed.
BIOME_UNSET  = 255

class ChunkData:
    """
    A 16x256x16 column of blocks, each with a 12-bit ID and a 4-bit data value.
    Every block starts out as air. Writes outside of the column are ignored.
    Blocks are indexed in YZX order, like Anvil sections.
    """
    __slots__ = ( "_ids", "_data", "_count" )

    def __init__( self ):
        self._ids   = array( "H", [ AIR ] ) * CHUNK_VOLUME
        self._data  = bytearray( CHUNK_VOLUME )
        self._count = 0

    def setBlock( self, x, y, z, id, data=0 ):
        """Sets the block at chunk-relative coordinates (x, y, z). Coordinates outside of the column are ignored."""
        if not ( 0 <= x < CHUNK_WIDTH and 0 <= y < CHUNK_HEIGHT and 0 <= z < CHUNK_WIDTH ):
            return
        i = ( y << 8 ) | ( z << 4 ) | x
        ids = self._ids
        if ids[i] == AIR and id != AIR:
            self._count += 1
        elif ids[i] != AIR and id == AIR:
            self._count -= 1
        ids[i] = id & 0xFFF
        self._data[i] = data & 0x0F

    def getBlock( self, x, y, z ):
        """Returns a tuple ( id, data ) for the block at chunk-relative coordinates (x, y, z)."""
        i = ( y << 8 ) | ( z << 4 ) | x
        return ( self._ids[i], self._data[i] )

    def getID( self, x, y, z ):
        return self._ids[ ( y << 8 ) | ( z << 4 ) | x ]

    def getData( self, x, y, z ):
        return self._data[ ( y << 8 ) | ( z << 4 ) | x ]

    def isEmpty( self ):
        """Returns True if every block in the column is air."""
        return self._count == 0

    def getBlockCount( self ):
        """Returns the number of non-air blocks in the column."""
        return self._count
    blockCount = property( getBlockCount )

    def __getitem__( self, index ):
        """Handles data[x,y,z]. Equivalent to data.getBlock( x, y, z )."""
        return self.getBlock( *index )

    def __repr__( self ):
        return "ChunkData({:d} blocks)".format( self._count )

class BiomeGrid:
    """A 16x16 grid of biome IDs for a chunk column, indexed in ZX order (index = 16*z + x)."""
    __slots__ = ( "_biomes", )

    def __init__( self, biome=BIOME_OCEAN ):
        self._biomes = bytearray( [ biome ] * ( CHUNK_WIDTH * CHUNK_WIDTH ) )

    def setBiome( self, x, z, biome ):
        self._biomes[ ( z << 4 ) | x ] = biome

    def getBiome( self, x, z ):
        return self._biomes[ ( z << 4 ) | x ]

    def toBytes( self ):
        """Returns the grid's biome IDs as 256 bytes in ZX order."""
        return bytes( self._biomes )

    def __getitem__( self, index ):
        """Handles grid[x,z]. Equivalent to grid.getBiome( x, z )."""
        return self.getBiome( *index )

    def __repr__( self ):
        return "BiomeGrid({!r})".format( self.toBytes() )

"""
ChunkAssembler is the entry point a world generator calls into.

It clones a source world chunk by chunk, in two passes:
    1. fillChunk() (or generateChunk()) is called once per newly generated chunk and fills its blocks and biomes.
    2. decorateChunk() (or populate()) is called once the chunk's neighbours exist, and attaches its tile entities.
Tile entities decoded in the first pass are kept in a small cache so the second pass usually doesn't decode the chunk again.
"""
import os.path
import logging

from worldclone.cache        import BoundedCache
from worldclone.coords       import CoordXZ
from worldclone.diagnostics  import LoggingDiagnosticSink
from worldclone.mc.grid      import ChunkData, BiomeGrid, BIOME_PLAINS, BIOME_UNSET, CHUNK_WIDTH
from worldclone.mc.level     import ChunkLevelExtractor
from worldclone.mc.region    import RegionFileCache
from worldclone.mc.tileentity import TileEntity
from worldclone.mc.util      import getRegionFolder, getSourceWorldPath, DEFAULT_SOURCE_SUFFIX

logger = logging.getLogger( __name__ )

REGION_CACHE_SIZE      = 4
TILE_ENTITY_CACHE_SIZE = 16

def fillBiomes( biomes, biome ):
    """Sets every column of a biome grid (anything with setBiome( x, z, id )) to the given biome."""
    for x in range( CHUNK_WIDTH ):
        for z in range( CHUNK_WIDTH ):
            biomes.setBiome( x, z, biome )

class ChunkAssembler:
    """
    Rebuilds chunks of a world from the chunks of a source world saved on disk.

    Chunks the source world doesn't have come out as air with the default biome.
    Every anomaly met along the way is reported to the diagnostic sink; none of them stop generation.
    Safe to call from several threads at once.
    """
    __slots__ = ( "path", "sink", "regions", "extractor", "tileEntities", "createTileEntity", "defaultBiome" )

    def __init__( self, sourceWorldPath, sink=None, createTileEntity=None, regionCacheSize=REGION_CACHE_SIZE, tileEntityCacheSize=TILE_ENTITY_CACHE_SIZE, defaultBiome=BIOME_PLAINS ):
        """
        Constructor.
        sourceWorldPath is the path to the directory of the world to clone. Raises SourceWorldError if it (or its region directory) doesn't exist.
        sink is the DiagnosticSink anomalies are reported to. Defaults to a LoggingDiagnosticSink.
        createTileEntity is the host's tile entity factory, called as createTileEntity( world, compound ).
            It should return the tile entity to attach, or None if it can't build one from compound.
            Defaults to TileEntity.fromNBT.
        regionCacheSize is the maximum number of region files kept open at once.
        tileEntityCacheSize is the maximum number of chunks whose tile entities are kept between the two passes.
        defaultBiome is the biome ID given to chunks (or columns) without biome data.
        """
        self.path = os.path.abspath( sourceWorldPath )
        folder    = getRegionFolder( self.path )

        self.sink             = sink if sink is not None else LoggingDiagnosticSink()
        self.regions          = RegionFileCache( folder, regionCacheSize, self.sink )
        self.extractor        = ChunkLevelExtractor( self.regions, self.sink )
        self.tileEntities     = BoundedCache( tileEntityCacheSize )
        self.createTileEntity = createTileEntity if createTileEntity is not None else TileEntity.fromNBT
        self.defaultBiome     = defaultBiome

    @classmethod
    def forWorld( cls, worldName, savedir=None, suffix=DEFAULT_SOURCE_SUFFIX, **kwargs ):
        """
        Returns a ChunkAssembler that clones the world named worldName from its source world, "<worldName><suffix>".
        See help( getSourceWorldPath ) for savedir and suffix, and help( ChunkAssembler.__init__ ) for the remaining arguments.
        """
        return cls( getSourceWorldPath( worldName, savedir, suffix ), **kwargs )

    def fillChunk( self, chunkXZ, blocks, biomes ):
        """
        Fills blocks and biomes with the chunk at chunk coordinates chunkXZ from the source world.
        blocks must implement setBlock( x, y, z, id, data ), biomes must implement setBiome( x, z, id ).

        If the source world has no such chunk, biomes is filled with the default biome and blocks is left untouched (air).
        Otherwise, blocks and biomes are filled field by field: a field that can't be decoded falls back to its default
        without affecting the others. The chunk's tile entities are kept for decorateChunk().

        Returns True if the chunk was found in the source world.
        """
        chunkXZ = CoordXZ( *chunkXZ )
        extractor = self.extractor

        level = extractor.extractLevel( chunkXZ )
        if level is None:
            fillBiomes( biomes, self.defaultBiome )
            return False

        biomeIDs = extractor.extractBlocksAndBiomes( level, blocks, chunkXZ )

        #These will likely be reused by decorateChunk() unless this chunk is at the edge of the generated area
        self.tileEntities.put( chunkXZ, extractor.extractTileEntities( level, chunkXZ ) )

        if biomeIDs is None:
            fillBiomes( biomes, self.defaultBiome )
        else:
            self._writeBiomes( chunkXZ, biomeIDs, biomes )
        return True

    def generateChunk( self, chunkX, chunkZ ):
        """
        Returns a tuple ( blocks, biomes ) of a new ChunkData and BiomeGrid filled with the chunk at chunk coordinates (chunkX, chunkZ).
        See help( ChunkAssembler.fillChunk ).
        """
        blocks = ChunkData()
        biomes = BiomeGrid( self.defaultBiome )
        self.fillChunk( ( chunkX, chunkZ ), blocks, biomes )
        return blocks, biomes

    def decorateChunk( self, chunkXZ, chunk, world=None ):
        """
        Attaches the tile entities of the source chunk at chunk coordinates chunkXZ to chunk, the host's live chunk.
        chunk must implement addTileEntity( tileEntity ).
        world is passed through to the tile entity factory.

        Uses the tile entities kept by fillChunk() if they're still cached; otherwise decodes the chunk again.
        Tile entities the factory can't build are skipped; the rest are still attached.
        Returns the number of tile entities attached.
        """
        chunkXZ = CoordXZ( *chunkXZ )
        cache = self.tileEntities
        tileEntities = cache.getOrCompute( chunkXZ, lambda: self._loadTileEntities( chunkXZ ) )
        #Each chunk is decorated once; a second call decodes the chunk again.
        cache.discard( chunkXZ )

        if not tileEntities:
            return 0

        create = self.createTileEntity
        attached = 0
        for i, compound in enumerate( tileEntities ):
            try:
                tileEntity = create( world, compound )
            except Exception as e:
                self.sink.reportIssue( "Couldn't create tile entity {:d} of chunk {:d}, {:d}".format( i, chunkXZ.x, chunkXZ.z ), e )
                continue
            if tileEntity is None:
                logger.debug( "Skipped unconstructible tile entity %d of chunk %d, %d", i, chunkXZ.x, chunkXZ.z )
                continue
            chunk.addTileEntity( tileEntity )
            attached += 1
        return attached

    def populate( self, world, chunk ):
        """Host-facing form of decorateChunk(): decorates chunk at its own coordinates, chunk.x and chunk.z."""
        return self.decorateChunk( ( chunk.x, chunk.z ), chunk, world )

    def _loadTileEntities( self, chunkXZ ):
        level = self.extractor.extractLevel( chunkXZ )
        if level is None:
            self.sink.reportIssue( "Couldn't get 'Level' NBT for decorating chunk {:d}, {:d}".format( chunkXZ.x, chunkXZ.z ) )
            return None
        return self.extractor.extractTileEntities( level, chunkXZ )

    def _writeBiomes( self, chunkXZ, biomeIDs, biomes ):
        default = self.defaultBiome
        unset = 0
        for i, biome in enumerate( biomeIDs ):
            if biome == BIOME_UNSET:
                biome = default
                unset += 1
            biomes.setBiome( i & 15, i >> 4, biome )
        if unset:
            self.sink.reportIssue( "Chunk {:d}, {:d} has {:d} columns without a biome; used biome {:d} instead".format( chunkXZ.x, chunkXZ.z, unset, default ) )

    def close( self ):
        """Closes every region file held open by this assembler."""
        self.regions.close()

    def __enter__( self ):
        return self

    def __exit__( self, *args ):
        self.close()

    def __repr__( self ):
        return "ChunkAssembler('{}')".format( self.path )

from worldclone.shared import TAG_STRING

class TileEntity:
    """
    A tile entity cloned from the source world.
    id is the tile entity's type (e.g. "minecraft:chest"), x, y and z are its absolute block coordinates,
    and nbt is the TAG_Compound it was stored as, passed through untouched.
    """
    __slots__ = ( "id", "x", "y", "z", "nbt" )

    def __init__( self, id, x, y, z, nbt ):
        self.id  = id
        self.x   = x
        self.y   = y
        self.z   = z
        self.nbt = nbt

    @classmethod
    def fromNBT( cls, world, compound ):
        """
        Default tile entity factory.
        Returns a TileEntity for the given TAG_Compound, or None if it lacks an "id" string or integral "x", "y", "z" tags.
        world is the host's world object; the default factory has no use for it.
        """
        id = compound.get( "id" )
        if id is None or id.tagType != TAG_STRING:
            return None
        pos = []
        for name in ( "x", "y", "z" ):
            t = compound.get( name )
            if t is None or not t.isIntegral:
                return None
            pos.append( int( t ) )
        return cls( str( id ), pos[0], pos[1], pos[2], compound )

    def getPos( self ):
        return ( self.x, self.y, self.z )
    pos = property( getPos )

    def __repr__( self ):
        return "TileEntity('{}', {:d}, {:d}, {:d})".format( self.id, self.x, self.y, self.z )

class LiveChunk:
    """
    A minimal stand-in for the host's live chunk: a chunk position plus the tile entities attached to it.
    Hosts pass their own chunk objects to ChunkAssembler.decorateChunk(); anything with x, z and addTileEntity() will do.
    """
    __slots__ = ( "x", "z", "tileEntities" )

    def __init__( self, x, z ):
        self.x = x
        self.z = z
        self.tileEntities = {}

    def addTileEntity( self, tileEntity ):
        """Attaches tileEntity, replacing any tile entity already at its position."""
        self.tileEntities[ tileEntity.pos ] = tileEntity

    def getTileEntity( self, x, y, z ):
        return self.tileEntities.get( ( x, y, z ) )

    def __repr__( self ):
        return "LiveChunk({:d}, {:d})".format( self.x, self.z )

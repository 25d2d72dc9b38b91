from collections import namedtuple

#Number of chunks along each side of a region.
REGION_SIZE  = 32
REGION_SHIFT = 5
REGION_MASK  = REGION_SIZE - 1

class CoordXZ( namedtuple( "CoordXZ", ( "x", "z" ) ) ):
    """
    An immutable (x, z) pair of integer coordinates.
    Used as chunk coordinates and, after shifting, as region coordinates. Hashable, so it can key a cache.
    """
    __slots__ = ()

    def toRegion( self ):
        """
        Returns the coordinates of the region containing this chunk.
        ">> 5" is floor division by 32, so chunk (-1,-1) is in region (-1,-1), not (0,0).
        """
        return CoordXZ( self.x >> REGION_SHIFT, self.z >> REGION_SHIFT )

    def toLocal( self ):
        """
        Returns the coordinates of this chunk relative to its region, each in the range [0,31].
        "& 31" never yields negative numbers, unlike "% 32" in languages that truncate.
        """
        return CoordXZ( self.x & REGION_MASK, self.z & REGION_MASK )

    def regionIndex( self ):
        """Returns the index of this chunk's slot in its region's location and timestamp tables."""
        return ( self.x & REGION_MASK ) + REGION_SIZE * ( self.z & REGION_MASK )

    def __repr__( self ):
        return "CoordXZ({:d}, {:d})".format( self.x, self.z )

import os.path

from worldclone.shared import SourceWorldError

#A world named "Spawn" is cloned from a source world saved as "Spawn_original".
DEFAULT_SOURCE_SUFFIX = "_original"

def getSourceWorldPath( worldName, savedir=None, suffix=DEFAULT_SOURCE_SUFFIX ):
    """
    Returns the path of the source world that a world with the given name is cloned from.
    savedir is optional, and defaults to the current working directory (where a server keeps its worlds).
    e.g.
        getSourceWorldPath( "Spawn" )
        "Spawn_original"
    """
    name = worldName + suffix
    if savedir is None:
        return name
    return os.path.join( savedir, name )

def getRegionFolder( worldPath ):
    """
    Returns the path of the region directory of the world at worldPath.
    Raises SourceWorldError if the world directory or its region directory doesn't exist.
    """
    if not os.path.isdir( worldPath ):
        raise SourceWorldError( "Source world folder \"{}\" doesn't exist.".format( worldPath ) )
    path = os.path.join( worldPath, "region" )
    if not os.path.isdir( path ):
        raise SourceWorldError( "Folder 'region' for world \"{}\" doesn't exist.".format( worldPath ) )
    return path

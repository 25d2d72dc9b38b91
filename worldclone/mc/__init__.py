"""
worldclone's mc package contains the Minecraft-specific parts of a world clone: region files, chunk levels, grids and tile entities.
"""

"""
worldclone rebuilds a Minecraft world from the chunks of another world saved on disk.
Chunks are read on demand from the source world's Anvil region files, decoded from NBT,
and written into block and biome grids (first pass) and live chunks (tile entities, second pass).
"""

#NBT Tag Types, Exceptions
from worldclone.shared import (
    TAG_END, TAG_BYTE, TAG_SHORT, TAG_INT, TAG_LONG, TAG_FLOAT, TAG_DOUBLE, TAG_BYTE_ARRAY, TAG_STRING, TAG_LIST, TAG_COMPOUND, TAG_INT_ARRAY,
    TAG_COUNT,
    DecodeError, NBTFormatError, WrongTagError, DuplicateNameError, UnknownTagTypeError, OutOfBoundsError, TruncatedDataError,
    CompressionError, RegionFormatError, SectionFormatError, BiomeLengthError, SourceWorldError
)

#read, decodeChunk, NBTDocument and TAG_* Classes
from worldclone.tag import read, decodeChunk, NBTDocument, TAG_Byte, TAG_Short, TAG_Int, TAG_Long, TAG_Float, TAG_Double, TAG_Byte_Array, TAG_String, TAG_List, TAG_Compound, TAG_Int_Array

#Coordinates, caches and diagnostics
from worldclone.coords      import CoordXZ
from worldclone.cache       import BoundedCache
from worldclone.diagnostics import DiagnosticSink, LoggingDiagnosticSink, CollectingDiagnosticSink, configureLogging

#Minecraft world access and chunk assembly
from worldclone.mc.region     import RegionFile, RegionFileCache
from worldclone.mc.level      import ChunkLevelExtractor
from worldclone.mc.grid       import ChunkData, BiomeGrid, BIOME_PLAINS
from worldclone.mc.tileentity import TileEntity, LiveChunk
from worldclone.mc.util       import getSourceWorldPath
from worldclone.mc.assembler  import ChunkAssembler


#Export everything we imported above
__all__ = [
    "TAG_END", "TAG_BYTE", "TAG_SHORT", "TAG_INT", "TAG_LONG", "TAG_FLOAT", "TAG_DOUBLE", "TAG_BYTE_ARRAY", "TAG_STRING", "TAG_LIST", "TAG_COMPOUND", "TAG_INT_ARRAY",
    "TAG_COUNT",
    "DecodeError", "NBTFormatError", "WrongTagError", "DuplicateNameError", "UnknownTagTypeError", "OutOfBoundsError", "TruncatedDataError",
    "CompressionError", "RegionFormatError", "SectionFormatError", "BiomeLengthError", "SourceWorldError",
    "read", "decodeChunk", "NBTDocument", "TAG_Byte", "TAG_Short", "TAG_Int", "TAG_Long", "TAG_Float", "TAG_Double", "TAG_Byte_Array", "TAG_String", "TAG_List", "TAG_Compound", "TAG_Int_Array",
    "CoordXZ",
    "BoundedCache",
    "DiagnosticSink", "LoggingDiagnosticSink", "CollectingDiagnosticSink", "configureLogging",
    "RegionFile", "RegionFileCache",
    "ChunkLevelExtractor",
    "ChunkData", "BiomeGrid", "BIOME_PLAINS",
    "TileEntity", "LiveChunk",
    "getSourceWorldPath",
    "ChunkAssembler"
]

import struct
import unittest

from io import BytesIO

import worldclone

from worldclone.shared import COMPRESSION_GZIP, COMPRESSION_ZLIB, COMPRESSION_NONE, MAX_DEPTH

from fixtures import makeChunk, makeSection, makeTileEntity, encodeChunk, encodeDocument, nestedLists

def chunkStream( doc, compression=COMPRESSION_ZLIB ):
    return BytesIO( encodeChunk( doc, compression ) )

class TestDecodeChunk( unittest.TestCase ):
    def setUp( self ):
        section = makeSection( 3, [ i & 0xFF for i in range( 4096 ) ], [ i & 15 for i in range( 4096 ) ] )
        chest = makeTileEntity( "minecraft:chest", 5, 60, -7, Lock=worldclone.TAG_String( "" ) )
        self.doc = makeChunk( [ section ], bytes( range( 256 ) ), [ chest ] )

    def test_compressions( self ):
        for compression in ( COMPRESSION_GZIP, COMPRESSION_ZLIB, COMPRESSION_NONE ):
            root = worldclone.decodeChunk( chunkStream( self.doc, compression ) )
            self.assertEqual( root, self.doc )
            self.assertEqual( root.name, "" )

    def test_types( self ):
        root = worldclone.decodeChunk( chunkStream( self.doc ) )
        level = root["Level"]
        self.assertEqual( level.tagType, worldclone.TAG_COMPOUND )
        sections = level["Sections"]
        self.assertEqual( sections.listTagType, worldclone.TAG_COMPOUND )
        self.assertEqual( sections[0]["Y"].tagType, worldclone.TAG_BYTE )
        self.assertEqual( sections[0]["Y"], 3 )
        self.assertEqual( bytes( level["Biomes"] ), bytes( range( 256 ) ) )
        chest = level["TileEntities"][0]
        self.assertEqual( chest["id"], "minecraft:chest" )
        self.assertEqual( chest["z"], -7 )
        self.assertEqual( chest["Lock"], "" )

    def test_getTyped( self ):
        level = worldclone.decodeChunk( chunkStream( self.doc ) )["Level"]
        self.assertIsNotNone( level.getTyped( "Biomes", worldclone.TAG_BYTE_ARRAY ) )
        self.assertIsNone( level.getTyped( "Biomes", worldclone.TAG_LIST ) )
        self.assertIsNotNone( level.getTyped( "Sections", worldclone.TAG_LIST ) )
        self.assertIsNone( level.getTyped( "Sections", worldclone.TAG_COMPOUND ) )
        self.assertIsNone( level.getTyped( "Missing", worldclone.TAG_LIST ) )

    def test_truncated( self ):
        data = encodeChunk( self.doc )
        for cut in ( 3, 5, len( data ) // 2, len( data ) - 1 ):
            with self.assertRaises( worldclone.DecodeError ):
                worldclone.decodeChunk( BytesIO( data[:cut] ) )

    def test_truncated_document( self ):
        raw = encodeDocument( self.doc )
        with self.assertRaises( worldclone.TruncatedDataError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw[:-10], COMPRESSION_NONE ) ) )

    def test_unknown_compression( self ):
        with self.assertRaises( worldclone.CompressionError ):
            worldclone.decodeChunk( chunkStream( self.doc, 7 ) )

    def test_corrupt_payload( self ):
        data = bytearray( encodeChunk( self.doc, COMPRESSION_ZLIB ) )
        data[5:15] = b"\xff" * 10
        with self.assertRaises( worldclone.CompressionError ):
            worldclone.decodeChunk( BytesIO( bytes( data ) ) )

    def test_root_not_compound( self ):
        raw = b"\x08\x00\x00\x00\x02hi"
        with self.assertRaises( worldclone.WrongTagError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_unknown_list_element( self ):
        #Root compound holding a list that declares element tag 42
        raw = b"\x0a\x00\x00" + b"\x09\x00\x01L" + b"\x2a" + struct.pack( ">i", 1 ) + b"\x00"
        with self.assertRaises( worldclone.UnknownTagTypeError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_nonempty_end_list( self ):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x01L" + b"\x00" + struct.pack( ">i", 3 ) + b"\x00"
        with self.assertRaises( worldclone.WrongTagError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_negative_lengths( self ):
        raw = b"\x0a\x00\x00" + b"\x07\x00\x01B" + struct.pack( ">i", -1 ) + b"\x00"
        with self.assertRaises( worldclone.OutOfBoundsError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_duplicate_name( self ):
        raw = b"\x0a\x00\x00" + b"\x01\x00\x01a\x05" + b"\x01\x00\x01a\x06" + b"\x00"
        with self.assertRaises( worldclone.DuplicateNameError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_trailing_bytes( self ):
        raw = encodeDocument( self.doc ) + b"\x00\x00"
        with self.assertRaises( worldclone.NBTFormatError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_empty_end_list( self ):
        raw = b"\x0a\x00\x00" + b"\x09\x00\x0cTileEntities" + b"\x00" + struct.pack( ">i", 0 ) + b"\x00"
        root = worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )
        tileEntities = root["TileEntities"]
        self.assertEqual( len( tileEntities ), 0 )
        self.assertEqual( tileEntities.listTagType, worldclone.TAG_END )
        self.assertTrue( tileEntities.isListOf( worldclone.TAG_COMPOUND ) )

    def test_nesting_limit( self ):
        #The root compound is level 0, so the innermost of MAX_DEPTH lists directly under it sits at level MAX_DEPTH
        raw = b"\x0a\x00\x00" + nestedLists( "Deep", MAX_DEPTH ) + b"\x00"
        root = worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )
        tag = root["Deep"]
        for _ in range( MAX_DEPTH - 1 ):
            tag = tag[0]
        self.assertEqual( len( tag ), 0 )

        for count in ( MAX_DEPTH + 1, 3000 ):
            raw = b"\x0a\x00\x00" + nestedLists( "Deep", count ) + b"\x00"
            with self.assertRaises( worldclone.NBTFormatError ):
                worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

    def test_nested_compounds( self ):
        raw = b"\x0a\x00\x00" + b"\x0a\x00\x01C" * 3000
        with self.assertRaises( worldclone.NBTFormatError ):
            worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )

class TestStrings( unittest.TestCase ):
    def decodeString( self, data ):
        raw = b"\x0a\x00\x00" + b"\x08\x00\x01s" + struct.pack( ">h", len( data ) ) + data + b"\x00"
        return worldclone.decodeChunk( BytesIO( encodeChunk( raw, COMPRESSION_NONE ) ) )["s"]

    def test_supplementary_characters( self ):
        #U+1F600 is stored as a surrogate pair, each surrogate encoded on its own in 3 bytes
        self.assertEqual( self.decodeString( b"\xed\xa0\xbd\xed\xb8\x80" ), "\U0001F600" )

    def test_null( self ):
        self.assertEqual( self.decodeString( b"a\xc0\x80b" ), "a\x00b" )

    def test_non_ascii( self ):
        self.assertEqual( self.decodeString( "Grüße".encode() ), "Grüße" )

    def test_invalid( self ):
        with self.assertRaises( worldclone.NBTFormatError ):
            self.decodeString( b"\xff" )
        with self.assertRaises( worldclone.NBTFormatError ):
            self.decodeString( b"a\xe2\x82" )

    def test_write( self ):
        doc = makeChunk( tileEntities=[ makeTileEntity( "minecraft:sign", 0, 0, 0, Text1=worldclone.TAG_String( "\U0001F600\x00" ) ) ] )
        raw = encodeDocument( doc )
        self.assertIn( b"\xed\xa0\xbd\xed\xb8\x80\xc0\x80", raw )
        root = worldclone.decodeChunk( BytesIO( encodeChunk( raw ) ) )
        self.assertEqual( root["Level"]["TileEntities"][0]["Text1"], "\U0001F600\x00" )

class TestTags( unittest.TestCase ):
    def test_bounds( self ):
        with self.assertRaises( worldclone.OutOfBoundsError ):
            worldclone.TAG_Byte( 128 )
        with self.assertRaises( worldclone.OutOfBoundsError ):
            worldclone.TAG_Short( -32769 )
        self.assertEqual( worldclone.TAG_Byte( -128 ), -128 )

    def test_list_types( self ):
        with self.assertRaises( worldclone.WrongTagError ):
            worldclone.TAG_List( ( worldclone.TAG_Int( 1 ), worldclone.TAG_String( "a" ) ) )
        ls = worldclone.TAG_List( ( worldclone.TAG_Int( 1 ), worldclone.TAG_Int( 2 ) ) )
        self.assertEqual( ls.listTagType, worldclone.TAG_INT )
        self.assertFalse( ls.isListOf( worldclone.TAG_COMPOUND ) )
        self.assertEqual( worldclone.TAG_List().listTagType, worldclone.TAG_END )

    def test_read_file_like( self ):
        doc = makeChunk()
        root = worldclone.read( BytesIO( encodeDocument( doc ) ) )
        self.assertEqual( root, doc )

if __name__ == "__main__":
    unittest.main()

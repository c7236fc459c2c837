def test_imports():
    import plycloud
    from plycloud import PointCloud, Point, HeaderMetadata, PlyEncoding, ColorKind, parse_ply, scan_header
    assert hasattr(plycloud, "__version__")
    assert PointCloud and Point and HeaderMetadata and PlyEncoding and ColorKind
    assert callable(parse_ply) and callable(scan_header)


def test_error_hierarchy():
    from plycloud import (
        PlyError,
        InvalidFormatError,
        MissingHeaderTerminatorError,
        UnsupportedFormatError,
        MissingVertexDataError,
        HeaderDecodeError,
        ParsingError,
    )
    for cls in (InvalidFormatError, UnsupportedFormatError, MissingVertexDataError, HeaderDecodeError, ParsingError):
        assert issubclass(cls, PlyError)
    assert issubclass(MissingHeaderTerminatorError, InvalidFormatError)
    assert issubclass(PlyError, ValueError)

"""Lookup tables for normalizing ffprobe output."""

# Normalized tag key -> source tag keys (casefolded), in priority order.
# The first alias with a non-empty value wins.
TAG_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "tagTitle": ("title",),
    "tagAlbum": ("album",),
    "tagArtist": ("artist",),
    "tagAlbumArtist": ("album_artist", "album-artist"),
    "tagGenre": ("genre",),
    "tagDate": ("date", "year"),
    "tagComposer": ("composer",),
    "tagComment": ("comment",),
    "tagDescription": ("description",),
    "tagPublisher": ("publisher",),
    "tagSubtitle": ("subtitle",),
    "tagTrack": ("track",),
    "tagDisc": ("disc",),
    "tagLanguage": ("language",),
    "tagISBN": ("isbn",),
    "tagASIN": ("asin",),
    "tagSeries": ("series",),
    "tagSeriesPart": ("series-part", "series_part"),
}

# Every source key that feeds a normalized key
MAPPED_SOURCE_KEYS: frozenset[str] = frozenset(
    alias for aliases in TAG_KEY_ALIASES.values() for alias in aliases
)

# Video "streams" with these codecs are still images (cover art)
IMAGE_CODECS: frozenset[str] = frozenset({"mjpeg", "png", "bmp", "gif", "webp"})

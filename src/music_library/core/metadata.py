"""Tag reading and writing for audio files using mutagen."""

import base64
import re
from pathlib import Path
from typing import Dict, List, Optional, Any

from mutagen import File as MutagenFile, MutagenError
from mutagen.flac import FLAC, Picture
from mutagen.id3 import ID3, APIC, TIT2, TPE1, TALB, TDRC, TRCK
from mutagen.mp4 import MP4, MP4Cover

from ..exceptions import MetadataError, WriteFailedError
from ..models.library_entry import ArtworkImage, MetadataUpdate, TrackTags

# ID3 frame ids for each writable field
_ID3_FRAMES = {
    'title': ('TIT2', TIT2),
    'artist': ('TPE1', TPE1),
    'album': ('TALB', TALB),
    'year': ('TDRC', TDRC),
    'track_number': ('TRCK', TRCK),
}

_MP4_KEYS = {
    'title': '\xa9nam',
    'artist': '\xa9ART',
    'album': '\xa9alb',
    'year': '\xa9day',
}

_VORBIS_KEYS = {
    'title': 'title',
    'artist': 'artist',
    'album': 'album',
    'year': 'date',
    'track_number': 'tracknumber',
}


class TagHandler:
    """Read and write the tags the catalog cares about.

    Dispatches on the tag container: ID3 (MP3, WAV, AIFF), MP4 atoms, or
    Vorbis comments (FLAC, Ogg Vorbis, Opus).
    """

    def read_tags(self, file_path: Path) -> TrackTags:
        """Extract catalog tags and duration from an audio file."""
        audio = self._open(file_path)
        tags = TrackTags()

        info = getattr(audio, 'info', None)
        length = getattr(info, 'length', 0) or 0
        tags.duration_seconds = max(float(length), 0.0)

        container = audio.tags
        if container is None:
            tags.has_artwork = bool(getattr(audio, 'pictures', None))
            return tags

        if isinstance(container, ID3):
            tags.title = self._first(self._get_id3_text(container, ['TIT2']))
            tags.artist = self._first(self._get_id3_text(container, ['TPE1']))
            tags.album = self._first(self._get_id3_text(container, ['TALB']))
            tags.year = self._parse_year(self._first(self._get_id3_text(container, ['TDRC', 'TYER'])))
            tags.track_number = self._parse_track(self._first(self._get_id3_text(container, ['TRCK'])))
            tags.has_artwork = bool(container.getall('APIC'))
        elif isinstance(audio, MP4):
            tags.title = self._first(self._get_field(container, [_MP4_KEYS['title']]))
            tags.artist = self._first(self._get_field(container, [_MP4_KEYS['artist']]))
            tags.album = self._first(self._get_field(container, [_MP4_KEYS['album']]))
            tags.year = self._parse_year(self._first(self._get_field(container, [_MP4_KEYS['year']])))
            track = container.get('trkn')
            if track and isinstance(track[0], tuple) and track[0][0]:
                tags.track_number = int(track[0][0])
            tags.has_artwork = bool(container.get('covr'))
        else:
            # Vorbis comment keys are case-insensitive
            tags.title = self._first(self._get_field(container, ['title']))
            tags.artist = self._first(self._get_field(container, ['artist']))
            tags.album = self._first(self._get_field(container, ['album']))
            tags.year = self._parse_year(self._first(self._get_field(container, ['date', 'year'])))
            tags.track_number = self._parse_track(self._first(self._get_field(container, ['tracknumber'])))
            tags.has_artwork = bool(getattr(audio, 'pictures', None)) or \
                bool(self._get_field(container, ['metadata_block_picture']))

        return tags

    def read_artwork(self, file_path: Path) -> Optional[ArtworkImage]:
        """Return the first embedded image, or None if the file has none."""
        audio = self._open(file_path)
        container = audio.tags

        if isinstance(audio, FLAC) and audio.pictures:
            picture = audio.pictures[0]
            return ArtworkImage(data=picture.data, mime_type=picture.mime or 'image/jpeg')

        if container is None:
            return None

        if isinstance(container, ID3):
            frames = container.getall('APIC')
            if frames:
                frame = frames[0]
                return ArtworkImage(data=frame.data, mime_type=frame.mime or 'image/jpeg')
            return None

        if isinstance(audio, MP4):
            covers = container.get('covr')
            if covers:
                cover = covers[0]
                mime = 'image/png' if cover.imageformat == MP4Cover.FORMAT_PNG else 'image/jpeg'
                return ArtworkImage(data=bytes(cover), mime_type=mime)
            return None

        for encoded in self._get_field(container, ['metadata_block_picture']):
            try:
                picture = Picture(base64.b64decode(encoded))
            except (ValueError, MutagenError):
                continue
            return ArtworkImage(data=picture.data, mime_type=picture.mime or 'image/jpeg')

        return None

    def write_tags(self, file_path: Path, update: MetadataUpdate) -> None:
        """Overwrite only the provided fields, leaving every other tag intact.

        Raises:
            WriteFailedError: If the file cannot be opened or saved.
        """
        values = update.provided_fields()
        if not values:
            return

        try:
            audio = self._open(file_path)
            if audio.tags is None:
                audio.add_tags()

            container = audio.tags
            if isinstance(container, ID3):
                self._write_id3(container, values)
            elif isinstance(audio, MP4):
                self._write_mp4(container, values)
            else:
                self._write_vorbis(container, values)

            audio.save()
        except (MetadataError, MutagenError, OSError) as e:
            raise WriteFailedError(f"Failed to write tags to {file_path.name}: {e}") from e

    @staticmethod
    def _open(file_path: Path):
        try:
            audio = MutagenFile(file_path)
        except (MutagenError, OSError) as e:
            raise MetadataError(f"Failed to read {file_path.name}: {e}") from e
        if audio is None:
            raise MetadataError(f"Unsupported file format: {file_path.name}")
        return audio

    @staticmethod
    def _write_id3(container: ID3, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            frame_id, frame_class = _ID3_FRAMES[key]
            container.setall(frame_id, [frame_class(encoding=3, text=[str(value)])])
            if key == 'year':
                # v2.3 files may still carry the old year frame
                container.delall('TYER')

    @staticmethod
    def _write_mp4(container, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if key == 'track_number':
                existing = container.get('trkn')
                total = existing[0][1] if existing and isinstance(existing[0], tuple) else 0
                container['trkn'] = [(int(value), total)]
            else:
                container[_MP4_KEYS[key]] = [str(value)]

    @staticmethod
    def _write_vorbis(container, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            container[_VORBIS_KEYS[key]] = [str(value)]

    @staticmethod
    def _get_id3_text(tags: ID3, frame_ids: List[str]) -> List[str]:
        """Get text from ID3 frame."""
        for frame_id in frame_ids:
            if frame_id in tags:
                frame = tags[frame_id]
                if hasattr(frame, 'text'):
                    return [str(t) for t in frame.text]
        return []

    @staticmethod
    def _get_field(tags, keys: List[str]) -> List[str]:
        """Get a field that can have multiple values."""
        for key in keys:
            if key in tags:
                values = tags[key]
                if isinstance(values, list):
                    return [str(v) for v in values]
                return [str(values)]
        return []

    @staticmethod
    def _first(values: List[str]) -> Optional[str]:
        return values[0] if values else None

    @staticmethod
    def _parse_year(value: Optional[str]) -> Optional[int]:
        if not value:
            return None
        year_match = re.search(r'(\d{4})', value)
        return int(year_match.group(1)) if year_match else None

    @staticmethod
    def _parse_track(value: Optional[str]) -> Optional[int]:
        # Handle "total" format like "5/12"
        if not value:
            return None
        track_match = re.match(r'\s*(\d+)', value)
        return int(track_match.group(1)) if track_match else None

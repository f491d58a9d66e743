"""Generate square app icons at a fixed set of sizes from one source image."""

import argparse
import enum
import io
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

DEFAULT_SOURCE = "original-icon.png"
DEFAULT_OUTPUT_DIR = "icons"
DEFAULT_SIZES = (72, 96, 128, 144, 152, 192, 384, 512)


class OutputFormat(enum.Enum):
    PNG = ("PNG", "png")
    WEBP = ("WEBP", "webp")
    JPEG = ("JPEG", "jpg")

    def __init__(self, pil_format, extension):
        self.pil_format = pil_format
        self.extension = extension

    @classmethod
    def from_name(cls, name):
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unsupported output format: {name}") from None

    def prepare(self, img):
        # JPEG has no alpha channel
        if self is OutputFormat.JPEG:
            return img if img.mode in ("RGB", "L") else img.convert("RGB")
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            return img.convert("RGBA")
        return img


class IconGenerationError(Exception):
    """Base class for every failure that stops the job."""

    action = "generate icons"

    def __init__(self, path, size=None):
        self.path = path
        self.size = size
        super().__init__(path, size)

    def __str__(self):
        where = f"{self.path}" if self.size is None else f"{self.path} ({self.size}x{self.size})"
        message = f"Could not {self.action}: {where}"
        if self.__cause__ is not None:
            message += f": {self.__cause__}"
        return message


class SourceUnavailable(IconGenerationError):
    action = "read source image"


class DecodeFailure(IconGenerationError):
    action = "decode source image"


class DirectoryCreateFailure(IconGenerationError):
    action = "create output directory"


class EncodeOrWriteFailure(IconGenerationError):
    action = "write icon"


@dataclass(frozen=True)
class IconJobConfig:
    source_path: str = DEFAULT_SOURCE
    output_dir: str = DEFAULT_OUTPUT_DIR
    sizes: Tuple[int, ...] = DEFAULT_SIZES
    output_format: OutputFormat = OutputFormat.PNG

    def __post_init__(self):
        sizes = tuple(self.sizes)
        for size in sizes:
            if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
                raise ValueError(f"Icon size must be a positive integer, got {size!r}")
        if len(set(sizes)) != len(sizes):
            raise ValueError(f"Icon sizes must not repeat: {list(sizes)}")
        object.__setattr__(self, "sizes", sizes)
        if not isinstance(self.output_format, OutputFormat):
            object.__setattr__(self, "output_format", OutputFormat.from_name(self.output_format))

    def filename_for(self, size):
        return f"icon-{size}x{size}.{self.output_format.extension}"

    def path_for(self, size):
        return os.path.join(self.output_dir, self.filename_for(size))


@dataclass(frozen=True)
class IconArtifact:
    size: int
    path: str

    @property
    def filename(self):
        return os.path.basename(self.path)


@dataclass
class IconJobResult:
    config: IconJobConfig
    artifacts: List[IconArtifact] = field(default_factory=list)
    error: Optional[IconGenerationError] = None

    @property
    def ok(self):
        return self.error is None

    @property
    def paths(self):
        return [artifact.path for artifact in self.artifacts]


def _ensure_output_dir(path):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        # exist_ok still raises when the path is a regular file
        raise DirectoryCreateFailure(path) from exc


def _open_source(path):
    try:
        img = Image.open(path)
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise DecodeFailure(path) from exc
    except OSError as exc:
        raise SourceUnavailable(path) from exc

    try:
        img.load()
    except (OSError, SyntaxError) as exc:
        img.close()
        raise DecodeFailure(path) from exc
    return img


def _encode(img, size, output_format):
    resized = img.resize((size, size), Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    output_format.prepare(resized).save(buffer, format=output_format.pil_format)
    return buffer.getvalue()


def _write_artifact(path, data):
    f = open(path, "wb")
    try:
        with f:
            f.write(data)
    except OSError:
        # the bytes may only reach disk when the file is closed
        if os.path.lexists(path):
            os.remove(path)
        raise


def iter_icons(config=None):
    """Write the icons one size at a time, yielding each artifact once it is on disk.

    The first failure raises an ``IconGenerationError`` subclass and stops the
    remaining sizes. Icons already written are left in place.
    """
    config = config or IconJobConfig()
    _ensure_output_dir(config.output_dir)

    with _open_source(config.source_path) as img:
        for size in config.sizes:
            path = config.path_for(size)
            try:
                data = _encode(img, size, config.output_format)
            except (OSError, ValueError) as exc:
                raise EncodeOrWriteFailure(path, size) from exc
            try:
                _write_artifact(path, data)
            except OSError as exc:
                raise EncodeOrWriteFailure(path, size) from exc
            yield IconArtifact(size, path)


def run(config=None, on_progress=None):
    config = config or IconJobConfig()
    result = IconJobResult(config)
    try:
        for artifact in iter_icons(config):
            result.artifacts.append(artifact)
            if on_progress is not None:
                on_progress(artifact)
    except IconGenerationError as exc:
        result.error = exc
    return result


def _positive_int(value):
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}") from None
    if size <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive: {value!r}")
    return size


def build_parser():
    parser = argparse.ArgumentParser(
        prog="generate-icons",
        description="Generate square icons at several sizes from one source image.",
    )
    parser.add_argument("--source", default=DEFAULT_SOURCE, help=f"source image (default: {DEFAULT_SOURCE})")
    parser.add_argument(
        "--output-dir", default=DEFAULT_OUTPUT_DIR, help=f"output directory (default: {DEFAULT_OUTPUT_DIR})"
    )
    parser.add_argument(
        "--sizes",
        nargs="+",
        type=_positive_int,
        default=list(DEFAULT_SIZES),
        metavar="SIZE",
        help="icon sizes in pixels",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=[fmt.name.lower() for fmt in OutputFormat],
        default="png",
        help="output encoding (default: png)",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = IconJobConfig(
            source_path=args.source,
            output_dir=args.output_dir,
            sizes=args.sizes,
            output_format=OutputFormat.from_name(args.output_format),
        )
    except ValueError as exc:
        parser.error(str(exc))

    result = run(config, on_progress=lambda artifact: print(f"✓ Generated {artifact.filename}"))
    if not result.ok:
        print(f"❌ Error generating icons: {result.error}", file=sys.stderr)
        return 1

    print("✅ All icons generated successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())

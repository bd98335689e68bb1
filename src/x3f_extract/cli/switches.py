"""Single-dash switch parsing for the extraction command line."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from x3f_extract.application.options import ExecutionConfig
from x3f_extract.application.use_cases import build_execution_config
from x3f_extract.errors import UsageError
from x3f_extract.types import ColorEncoding, OutputKind

USAGE = """\
usage: {prog} <SWITCHES> <file1> ...
   -o <DIR>        Use <DIR> as output dir
   -jpg            Dump embedded JPG
   -meta           Dump metadata
   -raw            Dump RAW area undecoded
   -tiff           Dump RAW as 3x16 bit TIFF
   -dng            Dump RAW as DNG LinearRaw (default)
   -ppm-ascii      Dump RAW/color as 3x16 bit PPM/P3 (ascii)
                   NOTE: 16 bit PPM/P3 is not generally supported
   -ppm            Dump RAW/color as 3x16 bit PPM/P6 (binary)
   -histogram      Dump histogram as csv file
   -loghist        Dump histogram as csv file, with log exposure
   -color <COLOR>  Convert to RGB color
                   (sRGB, AdobeRGB, ProPhotoRGB)
   -unprocessed    Dump RAW without any preprocessing
   -qtop           Dump Quattro top layer without preprocessing
   -crop           Crop to active area
   -denoise        Denoise RAW data
   -wb <WB>        Select white balance preset
   -ocl            Use accelerated rendering when available

STRANGE STUFF
   -offset <OFF>   Offset for SD14 and older
                   NOTE: If not given, then offset is automatic
   -matrixmax <M>  Max num matrix elements in metadata (def=100)
"""

KIND_SWITCHES: dict[str, OutputKind] = {
    "-jpg": OutputKind.JPEG_EXTRACT,
    "-meta": OutputKind.META_EXTRACT,
    "-raw": OutputKind.RAW_BLOCK,
    "-tiff": OutputKind.TIFF,
    "-dng": OutputKind.DNG,
    "-ppm-ascii": OutputKind.PPM_ASCII,
    "-ppm": OutputKind.PPM_BINARY,
    "-histogram": OutputKind.HISTOGRAM_LINEAR,
    "-loghist": OutputKind.HISTOGRAM_LOG,
}

FLAG_SWITCHES: dict[str, tuple[str, object]] = {
    "-unprocessed": ("color_encoding", ColorEncoding.UNPROCESSED),
    "-qtop": ("color_encoding", ColorEncoding.QUATTRO_TOP),
    "-crop": ("crop", True),
    "-denoise": ("denoise", True),
    "-ocl": ("use_accelerator", True),
}

VALUE_SWITCHES: dict[str, str] = {
    "-o": "output_dir",
    "-wb": "white_balance",
    "-offset": "legacy_offset",
    "-matrixmax": "max_matrix_elements",
}

COLOR_NAMES: dict[str, ColorEncoding] = {
    "sRGB": ColorEncoding.SRGB,
    "AdobeRGB": ColorEncoding.ADOBE_RGB,
    "ProPhotoRGB": ColorEncoding.PROPHOTO_RGB,
}


@dataclass(frozen=True)
class ParsedArguments:
    """Execution plan plus the ordered list of input files."""

    config: ExecutionConfig
    input_files: tuple[str, ...]


def usage(prog: str = "x3f-extract") -> str:
    """Return the usage text."""
    return USAGE.format(prog=prog)


def parse_switches(argv: Sequence[str]) -> ParsedArguments:
    """Parse switches and input files.

    Parameters
    ----------
    argv : Sequence[str]
        Arguments without the program name. Switch parsing stops at the first
        token that does not start with ``-``; that token and everything after
        it are input files. Later switches override earlier ones.

    Returns
    -------
    ParsedArguments
        Validated configuration and input files.

    Raises
    ------
    UsageError
        On unknown switches, a missing switch value, an unknown colour, an
        output directory that is not an existing directory, invalid numbers,
        or when no input file is given.
    """
    values: dict[str, object] = {}
    index = 0
    while index < len(argv):
        token = argv[index]
        if not token.startswith("-"):
            break
        has_value = index + 1 < len(argv)
        if token in KIND_SWITCHES:
            values["output_kind"] = KIND_SWITCHES[token]
        elif token in FLAG_SWITCHES:
            key, value = FLAG_SWITCHES[token]
            values[key] = value
        elif token == "-color" and has_value:
            index += 1
            name = argv[index]
            if name not in COLOR_NAMES:
                raise UsageError(f"Unknown color encoding: {name}")
            values["color_encoding"] = COLOR_NAMES[name]
        elif token in VALUE_SWITCHES and has_value:
            index += 1
            values[VALUE_SWITCHES[token]] = argv[index]
        else:
            raise UsageError(f"Unknown switch: {token}")
        index += 1

    config = build_execution_config(**values)
    input_files = tuple(argv[index:])
    if not input_files:
        raise UsageError("No input files given.")
    return ParsedArguments(config=config, input_files=input_files)

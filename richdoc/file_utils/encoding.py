from typing import IO, Optional, Tuple, Union

import chardet

ENCODE_REC_THRESHOLD = 0.8

# popular encodings from https://en.wikipedia.org/wiki/Popularity_of_text_encodings
COMMON_ENCODINGS = [
    "utf_8",
    "iso_8859_1",
    "ascii",
    "big5",
    "utf_16",
    "euc_jp",
    "euc_kr",
    "gb18030",
    "shift_jis",
]


def format_encoding_str(encoding: str) -> str:
    """Format input encoding string (e.g., `utf-8`, `iso-8859-1`, etc)."""
    return encoding.lower().replace("_", "-")


def _read_bytes(file: Union[bytes, IO[bytes]]) -> bytes:
    if isinstance(file, bytes):
        return file
    content = file.read()
    return content.encode("utf-8") if isinstance(content, str) else content


def detect_file_encoding(
    filename: str = "",
    file: Optional[Union[bytes, IO[bytes]]] = None,
) -> Tuple[str, str]:
    """Detect the encoding of a markup source and decode it."""
    if filename:
        with open(filename, "rb") as f:
            byte_data = f.read()
    elif file:
        byte_data = _read_bytes(file)
    else:
        raise FileNotFoundError("No filename nor file were specified")

    result = chardet.detect(byte_data)
    encoding = result["encoding"]
    confidence = result["confidence"]

    if encoding is None or confidence < ENCODE_REC_THRESHOLD:
        # -- detection is unreliable on short inputs, try the common encodings in turn --
        for enc in COMMON_ENCODINGS:
            try:
                file_text = byte_data.decode(enc)
                encoding = enc
                break
            except (UnicodeDecodeError, UnicodeError):
                continue
        else:
            raise UnicodeDecodeError(
                "Unable to determine the encoding of the file or match it with any "
                "of the specified encodings.",
                byte_data,
                0,
                len(byte_data),
                "Invalid encoding",
            )
    else:
        file_text = byte_data.decode(encoding)

    return format_encoding_str(encoding), file_text


def read_txt_file(
    filename: str = "",
    file: Optional[Union[bytes, IO[bytes]]] = None,
    encoding: Optional[str] = None,
) -> Tuple[str, str]:
    """Read markup text from `filename` or `file`, detecting the encoding when not given."""
    if not filename and not file:
        raise FileNotFoundError("No filename was specified")

    if not encoding:
        return detect_file_encoding(filename, file)

    formatted_encoding = format_encoding_str(encoding)
    if filename:
        with open(filename, encoding=formatted_encoding) as f:
            return formatted_encoding, f.read()

    assert file is not None
    content = file if isinstance(file, bytes) else file.read()
    file_text = content.decode(formatted_encoding) if isinstance(content, bytes) else content
    return formatted_encoding, file_text

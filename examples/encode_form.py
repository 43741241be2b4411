"""
Example: encode a form offline and inspect it.

Writes the multipart body to a file so it can be replayed with curl:

    curl -H "Content-Type: $(cat form.ctype)" --data-binary @form.bin URL
"""

import sys

from imageform import MultipartEncoder, NamedReader


def main(image_path: str) -> None:
    with open("form.bin", "wb") as sink, open(image_path, "rb") as image:
        encoder = MultipartEncoder(sink)
        encoder.add_field("prompt", "a cat wearing a hat")
        # Type and filename are detected from the content.
        encoder.add_file("image", image)
        # Anonymous streams can still carry a filename.
        encoder.add_file("mask", NamedReader(b"\x89PNG\r\n\x1a\n", "mask.png"))
        encoder.finalize()

    with open("form.ctype", "w") as f:
        f.write(encoder.content_type_header())
    print(f"Wrote {encoder.bytes_written} bytes in {encoder.part_count} parts")


if __name__ == "__main__":
    main(sys.argv[1])

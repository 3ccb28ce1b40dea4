from ..options import OutputEncoding
from .base import ResponseDecoder
from .binary import BinaryResponseDecoder, frame
from .text import TextResponseDecoder


def create_decoder(output: OutputEncoding) -> ResponseDecoder:
    if OutputEncoding.parse(output) == OutputEncoding.TEXT:
        return TextResponseDecoder()
    return BinaryResponseDecoder()

"""Request body streaming and response body accumulation.

- PayloadStream: serves an encoded request body in bounded chunks
- ChunkAccumulator / read_body / read_payload: collect and decode a response body
- encode_json / decode_json: orjson text codec
"""

from .accumulator import ChunkAccumulator, read_body, read_payload
from .codec import CONTENT_TYPE, JSONDecodeError, decode_json, encode_json, encode_json_str
from .payload import DEFAULT_CHUNK_SIZE, PayloadData, PayloadStream

__all__ = [
    # Sink
    "PayloadStream", "PayloadData", "DEFAULT_CHUNK_SIZE",
    # Source
    "ChunkAccumulator", "read_body", "read_payload",
    # JSON
    "encode_json", "encode_json_str", "decode_json", "JSONDecodeError", "CONTENT_TYPE",
]

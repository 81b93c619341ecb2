"""Foundation: codecs, errors and configuration shared by every layer."""

from .codecs import ANY, Codec, CodecIssue, TypeCodec, codec, exact

__all__ = ["ANY", "Codec", "CodecIssue", "TypeCodec", "codec", "exact"]

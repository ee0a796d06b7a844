"""
Audio container and text chunking constants shared across the pipeline.
"""

# Audio format constants
WAV_HEADER_SIZE = 44
WAV_RIFF_HEADER_SIZE = 36
WAV_CHUNK_HEADER_SIZE = 8
WAV_PCM_FMT_CHUNK_SIZE = 16
WAV_FORMAT_PCM = 1
MP3_ID3V2_HEADER_SIZE = 10
MP3_ID3V1_TAG_SIZE = 128  # Measured from the end of the file

# Text chunking constants
DEFAULT_MAX_TEXT_LENGTH = 300

# Parallel synthesis
MAX_PARALLEL_WORKERS = 3

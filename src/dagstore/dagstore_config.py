"""Default configuration variables for DagStore"""

############### Storage Routing ###############
# Encoded payloads larger than this many bytes are stored through the file api
# (chunked) instead of as a single inline object
OBJECT_MAX_SIZE = 256 * 1024

############### Backend Requests ###############
# Time in milliseconds to wait on any backend call before giving up
REQUEST_TIMEOUT = 60 * 1000

############### Addresses ###############
# Encoding of the content addresses exchanged with the backend
ENCODING = "base58"
SUPPORTED_ENCODINGS = ["base58"]

############### Files ###############
# Size of the leaves a file is split into by the in-memory backend
CHUNK_SIZE = 256 * 1024

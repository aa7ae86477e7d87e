# Constants
DEFAULT_HOST = "127.0.0.1"
DEFAULT_CHUNK_SIZE = 64 * 1024  # 64 KB
DEFAULT_PARALLEL_REQUESTS = 5
DEFAULT_TIMEOUT = 30  # seconds

# Fixed payloads served by /data
DATA_LEN = 500 * 1024  # 500 KB
DATA_LONG_LEN = 50 * 1024 * 1024  # 50 MB
DATA_SIZES = {"short": DATA_LEN, "long": DATA_LONG_LEN}

# Lehmer generator parameters
PRNG_SEED = 1
PRNG_MULTIPLIER = 48271
PRNG_MODULUS = 2147483647

HELLO_TEXT = "Hello, World!\n"

# Operation modes
MODE_SERVE = "serve"
MODE_DOWNLOAD = "download"
MODE_UPLOAD = "upload"

# Largest request body the server reads into memory (/echo)
MAX_BODY_SIZE = 1024 * 1024 * 1024  # 1 GB

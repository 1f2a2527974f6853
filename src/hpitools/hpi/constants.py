HEADER_SIZE = 20

HAPI_MAGIC = 0x49504148  # "HAPI"
HAPI_VERSION_MAGIC = 0x00010000
HAPI2_VERSION_MAGIC = 0x00020000
BANK_MAGIC = 0x4B4E4142  # "BANK", saved games

# Uncompressed size of every chunk except the last one of a file
CHUNK_SIZE = 65536

SQSH_MAGIC = 0x48535153  # "SQSH"
SQSH_HEADER_SIZE = 19

LZ77_WINDOW_SIZE = 4096

PATH_SEPARATOR = "/"
STRING_ENCODING = "latin-1"

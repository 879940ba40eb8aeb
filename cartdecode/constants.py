import struct


# Magic and version
HEADER_MAGIC = b"CART"
FOOTER_MAGIC = b"TARC"

VERSION = 1

# Mandatory record layouts (little-endian, packed)
#  header: magic[4] version u16 reserved u64 arc4_key[16] opt_header_len u64
#  footer: magic[4] reserved u64 reserved u64 opt_footer_len u64
HEADER_FORMAT = "<4sHQ16sQ"
FOOTER_FORMAT = "<4sQQQ"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 38
FOOTER_SIZE = struct.calcsize(FOOTER_FORMAT)  # 28

KEY_SIZE = 16

# First digits of pi. Published, so containers using it are obfuscated, not encrypted.
DEFAULT_KEY = bytes([3, 1, 4, 1, 5, 9, 2, 6, 3, 1, 4, 1, 5, 9, 2, 6])

BLOCK_SIZE = 64 * 1024  # inflate output round
DEFAULT_MAX_OUTPUT_SIZE = 1 << 30  # 1 GiB

# Decode stages, attached to errors
STAGE_CONTAINER = "container"
STAGE_OPT_HEADER = "optional_header"
STAGE_OPT_FOOTER = "optional_footer"
STAGE_PAYLOAD = "payload"

# Configuration
CONFIG_ENV = "CART_CONFIG"
DEFAULT_CONFIG_PATH = "~/.cart/cart.cfg"
CONFIG_SECTION = "global"

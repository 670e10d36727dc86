"""
Constants for elliptic curve and field arithmetic.
"""

# SECP256K1 constants
# Order of the SECP256K1 elliptic curve (N value)
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Valid range for the r and s components of a signature: [1, N-1]
SECP256K1_MIN = 1
SECP256K1_MAX = SECP256K1_N - 1

# Uncompressed public key: 0x04 || x(32) || y(32)
UNCOMPRESSED_PUBKEY_PREFIX = 0x04
UNCOMPRESSED_PUBKEY_LENGTH = 65

# Recoverable signature: r(32) || s(32) || v(1)
SIGNATURE_LENGTH = 65
MESSAGE_HASH_LENGTH = 32

# Scalar field modulus of BN254, the field commitment values live in
BN254_SCALAR_MODULUS = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001

"""
Configuration constants for the Good Hackers vault.
"""

import os


# Security Settings
MIN_PASSWORD_LENGTH = 6  # Use: Minimum length for the master password at setup and reset. Type: int. Range: Positive integer.
MIN_ANSWER_LENGTH = 4  # Use: Minimum length of a trimmed security-question answer. Type: int. Range: Positive integer.
KEY_SIZE = 32  # Use: Size of the device encryption key in bytes (AES-256). Type: int. Range: 16, 24 or 32 bytes.
NONCE_SIZE = 12  # Use: Size of the AES-GCM nonce in bytes. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
PIN_HASH_ITERATIONS = 100000  # Use: PBKDF2-HMAC-SHA256 iterations for the PIN gate hash. Type: int. Range: Recommended to be at least 100,000.
PIN_HASH_SALT = b"GoodHackers_Pin_Salt"  # Use: Fixed salt for the PIN gate hash. Type: bytes. Range: Any byte string.

# Secure Store Keys
MASTER_KEY = "goodhackers_master_password"  # Use: Store key of the master-password digest. Type: str.
SEC_Q1_KEY = "goodhackers_security_question_1"  # Use: Store key of the first security question prompt. Type: str.
SEC_Q1_ANSWER_KEY = "goodhackers_security_answer_1"  # Use: Store key of the first answer digest. Type: str.
SEC_Q2_KEY = "goodhackers_security_question_2"  # Use: Store key of the second security question prompt. Type: str.
SEC_Q2_ANSWER_KEY = "goodhackers_security_answer_2"  # Use: Store key of the second answer digest. Type: str.
BIOMETRIC_ENABLED_KEY = "goodhackers_biometric_enabled"  # Use: Store key of the biometric preference flag ("true"/"false"). Type: str.
PASSWORDS_KEY = "goodhackers_passwords"  # Use: Store key of the serialized credential collection (JSON array). Type: str.
SECURITY_QUESTION_KEYS = (  # Use: All keys that make up the recovery data, deleted together on reset. Type: tuple[str].
    SEC_Q1_KEY,
    SEC_Q1_ANSWER_KEY,
    SEC_Q2_KEY,
    SEC_Q2_ANSWER_KEY,
)

# Biometric Settings
BIOMETRIC_PROMPT = "Unlock Good Hackers"  # Use: Message shown by the biometric challenge. Type: str. Range: Any descriptive string.
BIOMETRIC_ACCEPTED_TYPES = frozenset({"fingerprint"})  # Use: Sensor types that count as biometric capability. Type: frozenset[str]. Range: Subset of {"fingerprint", "face", "other"}.
PIN_GATE_ACCEPTED_TYPES = frozenset({"fingerprint", "other"})  # Use: Accepted sensor types when the desktop PIN gate stands in for a sensor. Type: frozenset[str]. Range: Subset of {"fingerprint", "face", "other"}.
PIN_PROMPT_ENTER = "Enter your PIN:"  # Use: Prompt message for the user to enter their PIN. Type: str. Range: Any descriptive string.
PIN_AUTH_FILE = "auth.json"  # Use: Filename holding the PIN gate hash. Type: str. Range: Any valid filename.

# Credential Settings
CATEGORY_ALL = "All"  # Use: Filter sentinel that matches every category. Type: str.
DEFAULT_CATEGORY = "General"  # Use: Category assigned when none is given. Type: str.

# Password Generator Settings
PASSWORD_GENERATOR_DEFAULT_LENGTH = 16  # Use: Default length for generated passwords. Type: int. Range: PASSWORD_GENERATOR_MIN_LENGTH to PASSWORD_GENERATOR_MAX_LENGTH.
PASSWORD_GENERATOR_MIN_LENGTH = 4  # Use: Lower bound applied by the generator screen. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_MAX_LENGTH = 50  # Use: Upper bound applied by the generator screen. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"  # Use: Symbol class of the generator. Type: str. Range: Any string of printable characters.
PASSWORD_GENERATOR_AMBIGUOUS_CHARS = "0O1lI"  # Use: Characters considered ambiguous and can be excluded from generated passwords. Type: str. Range: Any string of characters.

# File and Directory Names
CONFIG_DIR_NAME = ".goodhackers"  # Use: Hidden directory in the user's home holding the store, device key and PIN file. Type: str. Range: Any valid directory name.
DEFAULT_STORE_FILE = "vault.enc"  # Use: Default filename for the encrypted record store. Type: str. Range: Any valid filename.
DEVICE_KEY_FILE = "device.key"  # Use: Filename of the random device key encrypting the store. Type: str. Range: Any valid filename.


def config_dir() -> str:
    """Return the per-user configuration directory."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)

"""
Configuration settings for the streaming decoder.
Loads configuration from a .env file with fallback to defaults.
"""
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ===== Stream Settings =====
READ_SIZE = int(os.getenv('BDECODE_READ_SIZE', '4096'))  # bytes requested per read
BUFFER_SIZE = int(os.getenv('BDECODE_BUFFER_SIZE', '4096'))  # initial buffer capacity

# ===== Text Settings =====
TEXT_ENCODING = os.getenv('BDECODE_TEXT_ENCODING', 'utf-8')

"""
Configuration constants for the cover fixer.
"""
import os

# --- File Type Definitions ---
AUDIO_EXTS = {'.flac'}

# --- Cover Acceptance ---
# The player only renders baseline JPEG covers up to this size on either side.
MAX_COVER_DIMENSION = 1000
JPEG_QUALITY = 90
JPEG_MIME = 'image/jpeg'

# FLAC picture type 3 = "Cover (front)"
FRONT_COVER_TYPE = 3

# --- Cache ---
CACHE_FILENAME = '.cover_fixer_cache'
CACHE_FIELD_SEP = '\t'

# --- Workers & Scratch Space ---
DEFAULT_WORKERS = os.cpu_count() or 1
SCRATCH_PREFIX = 'cover_fixer_'
SLOT_SUFFIX = '.json'

# --- Reporting ---
FIXED_REPORT_LIMIT = 10

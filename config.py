import os

import dotenv

dotenv.load_dotenv()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Where the CLI's directory store writes extracted images.
IMAGE_OUTPUT_DIR: str = os.getenv("IMAGE_OUTPUT_DIR", "images")

# Prefix for URLs written into cells; empty means file:// URIs.
IMAGE_BASE_URL: str = os.getenv("IMAGE_BASE_URL", "")

XML_PREVIEW_CHARS: int = int(os.getenv("XML_PREVIEW_CHARS", "200"))

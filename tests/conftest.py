import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("STOREFRONT_SHOP_DOMAIN", "tastee.myshopify.com")
os.environ.setdefault("STOREFRONT_ACCESS_TOKEN", "storefront_token")
os.environ.setdefault("STOREFRONT_LOCALES", "fr-ca,en-gb")
os.environ.setdefault("PAGE_CONTENT_BASE_URL", "https://content.example.test")
os.environ.setdefault("PAGE_CONTENT_PROJECT_ID", "project_1")
os.environ.setdefault("COMBINED_LISTINGS_REDIRECT_TO_FIRST_VARIANT", "false")

import os
from dotenv import load_dotenv

# .env dosyasını projenin kök dizininden yükle
load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8001")
API_TIMEOUT = int(os.getenv("API_TIMEOUT", "10"))
PANEL_KULLANICI_ADI = os.getenv("PANEL_KULLANICI_ADI", "")

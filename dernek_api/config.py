import os
from dotenv import load_dotenv

# .env dosyasını projenin kök dizininden yükle
load_dotenv()


def _veritabani_url_olustur() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    db_user = os.getenv("DB_USER")
    db_password = os.getenv("DB_PASSWORD")
    db_host = os.getenv("DB_HOST")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME")
    if all([db_user, db_password, db_host, db_name]):
        return f"postgresql+psycopg2://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
    # PostgreSQL bilgileri yoksa yerel SQLite dosyası kullanılır
    return "sqlite:///./dernek.db"


# Ayarları .env dosyasından oku ve merkezi bir nesne olarak sun
class Settings:
    DATABASE_URL: str = _veritabani_url_olustur()

    OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
    OPENROUTER_URL: str = os.getenv("OPENROUTER_URL", "https://openrouter.ai/api/v1/chat/completions")
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-3.1-8b-instruct:free")
    LLM_TIMEOUT: int = int(os.getenv("LLM_TIMEOUT", "20"))

    REPORTS_DIR: str = os.getenv("REPORTS_DIR", "server_reports")
    PDF_FONT_PATH: str = os.getenv("PDF_FONT_PATH", "")
    CORS_ORIGINS: list = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    VARSAYILAN_KULLANICI: str = os.getenv("VARSAYILAN_KULLANICI", "Yönetici")


# Ayarları diğer dosyaların kullanabilmesi için tek bir nesne oluştur
settings = Settings()

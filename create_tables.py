import argparse
import logging
from datetime import date, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import database_exists, create_database

from dernek_api import modeller
from dernek_api.api_servisler import BasvuruIsAkisi, sonraki_makbuz_no
from dernek_api.config import settings
from dernek_api.veritabani import tablolari_olustur

# Loglama ayarları
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEMO_KULLANICI = "Kurulum"


def ornek_verileri_yukle(db):
    """Boş bir veritabanına panelde gezinmek için küçük bir örnek veri seti ekler."""
    if db.query(modeller.Kisi).first() is not None:
        logger.warning("Veritabanında kişi kayıtları var, örnek veriler eklenmedi.")
        return

    bugun = date.today()
    kisiler = [
        modeller.Kisi(ad="Ayşe", soyad="Yılmaz", uyruk="Türkiye", il="İstanbul", ilce="Kadıköy",
                      uyelik_turu=modeller.UyelikTuru.STANDART, kayit_tarihi=bugun - timedelta(days=90)),
        modeller.Kisi(ad="Mehmet", soyad="Demir", uyruk="Türkiye", il="Ankara", ilce="Çankaya",
                      uyelik_turu=modeller.UyelikTuru.GONULLU, kayit_tarihi=bugun - timedelta(days=45)),
        modeller.Kisi(ad="Fatma", soyad="Şahin", uyruk="Suriye", il="İzmir", ilce="Konak",
                      hane_buyuklugu=5, aylik_gelir=6000, kayit_tarihi=bugun - timedelta(days=10)),
    ]
    db.add_all(kisiler)
    db.flush()

    proje = modeller.Proje(ad="Kış Yardımı", yonetici="Ayşe Yılmaz", durum=modeller.ProjeDurumu.DEVAM_EDIYOR,
                           baslangic_tarihi=bugun - timedelta(days=30), butce=50000, harcanan=12500, ilerleme=25)
    db.add(proje)
    db.flush()

    for kisi, tutar, tur in ((kisiler[0], 1500, modeller.BagisTuru.BANKA_TRANSFERI), (kisiler[1], 250, modeller.BagisTuru.NAKIT)):
        db.add(modeller.Bagis(bagisci_id=kisi.id, tutar=tutar, bagis_turu=tur, tarih=bugun, proje_id=proje.id,
                              makbuz_no=sonraki_makbuz_no(db, bugun.year)))
        db.flush()
    db.commit()

    BasvuruIsAkisi(db, DEMO_KULLANICI).olustur({
        "basvuru_sahibi_id": kisiler[2].id,
        "basvuru_turu": modeller.YardimTuru.ACIL,
        "talep_tutari": 3000,
        "oncelik": modeller.BasvuruOnceligi.YUKSEK,
        "talep_detayi": "Kış dönemi yakacak ve gıda desteği talebi.",
    })
    logger.info("Örnek veriler eklendi.")


def main():
    parser = argparse.ArgumentParser(description="Dernek veritabanı tablolarını oluşturur.")
    parser.add_argument("--ornek-veri", action="store_true", help="Boş veritabanına örnek kayıtlar ekler")
    args = parser.parse_args()

    url = settings.DATABASE_URL
    if not url.startswith("sqlite") and not database_exists(url):
        logger.info("Veritabanı bulunamadı, oluşturuluyor...")
        create_database(url)
        logger.info("Veritabanı oluşturuldu.")

    engine = create_engine(url)
    tablolari_olustur(engine)

    if args.ornek_veri:
        Session = sessionmaker(bind=engine)
        db = Session()
        try:
            ornek_verileri_yukle(db)
        finally:
            db.close()

    engine.dispose()


if __name__ == "__main__":
    logger.info("Veritabanı şema oluşturma script'i çalıştırılıyor...")
    main()
    logger.info("Script tamamlandı.")

import enum
from datetime import date, datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Text, DateTime, Date,
    ForeignKey, Enum, JSON, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship, declarative_base


# --- ENUM TANIMLARI ---
class BasvuruDurumu(str, enum.Enum):
    BEKLEYEN = "Bekleyen"
    INCELENEN = "İncelenen"
    ONAYLANAN = "Onaylanan"        # Komisyon onayladı, başkan onayı bekleniyor
    REDDEDILEN = "Reddedilen"      # Komisyon reddetti
    TAMAMLANAN = "Tamamlanan"      # Ödeme yapıldı
    BASKAN_REDDETTI = "Başkan Reddetti"

class BasvuruAsamasi(str, enum.Enum):
    DEGERLENDIRME_BEKLIYOR = "Değerlendirme Bekliyor"
    INCELEMEDE = "İncelemede"
    BASKAN_ONAYI_BEKLIYOR = "Başkan Onayı Bekliyor"
    ODEME_BEKLIYOR = "Ödeme Bekliyor"
    TAMAMLANDI = "Tamamlandı"
    REDDEDILDI = "Reddedildi"
    BASKAN_REDDETTI = "Başkan Reddetti"

class BasvuruOnceligi(str, enum.Enum): DUSUK = "Düşük"; ORTA = "Orta"; YUKSEK = "Yüksek"
class YardimTuru(str, enum.Enum): EGITIM = "Eğitim Yardımı"; SAGLIK = "Sağlık Yardımı"; ACIL = "Acil Yardım"; DIGER = "Diğer"
class BagisTuru(str, enum.Enum): NAKIT = "Nakit"; KREDI_KARTI = "Kredi Kartı"; BANKA_TRANSFERI = "Banka Transferi"; ONLINE = "Online"; AYNI = "Ayni Yardım"
class ParaBirimi(str, enum.Enum): TRY = "TRY"; USD = "USD"; EUR = "EUR"
class ProjeDurumu(str, enum.Enum): PLANLAMA = "Planlama"; DEVAM_EDIYOR = "Devam Ediyor"; TAMAMLANDI = "Tamamlandı"; IPTAL_EDILDI = "İptal Edildi"
class GorevDurumu(str, enum.Enum): YAPILACAK = "Yapılacak"; YAPILIYOR = "Yapılıyor"; TAMAMLANDI = "Tamamlandı"
class GorevOnceligi(str, enum.Enum): DUSUK = "Düşük"; NORMAL = "Normal"; YUKSEK = "Yüksek"
class OdemeTuru(str, enum.Enum):
    BAGIS_GIRISI = "Bağış Girişi"
    YARDIM_ODEMESI = "Yardım Ödemesi"
    BURS_ODEMESI = "Burs Ödemesi"
    YETIM_DESTEGI = "Yetim Desteği"
    VEFA_DESTEGI = "Vefa Desteği"
    GIDER_ODEMESI = "Gider Ödemesi"
class OdemeDurumu(str, enum.Enum): BEKLEYEN = "Bekleyen"; TAMAMLANAN = "Tamamlanan"; IPTAL = "İptal"
class OdemeYontemi(str, enum.Enum): NAKIT = "Nakit"; BANKA_TRANSFERI = "Banka Transferi"; KREDI_KARTI = "Kredi Kartı"
class KisiDurumu(str, enum.Enum): AKTIF = "Aktif"; PASIF = "Pasif"; BEKLEMEDE = "Beklemede"
class UyelikTuru(str, enum.Enum): STANDART = "Standart"; GONULLU = "Gönüllü"; ONURSAL = "Onursal"
class DenetimEylemi(str, enum.Enum):
    OLUSTURMA = "Oluşturma"
    GUNCELLEME = "Güncelleme"
    SILME = "Silme"
    ONAYLAMA = "Onaylama"
    REDDETME = "Reddetme"
    ODEME_OLUSTURMA = "Ödeme Oluşturma"
    AKILLI_ARAMA = "Akıllı Arama"
class DenetimVarlikTuru(str, enum.Enum):
    KISI = "Kişi"
    BASVURU = "Yardım Başvurusu"
    PROJE = "Proje"
    BAGIS = "Bağış"
    ODEME = "Ödeme"
    YORUM = "Yorum"
    SISTEM = "Sistem"


def _enum_kolonu(enum_sinifi):
    # Veritabanında enum adı yerine Türkçe değer saklanır
    return Enum(
        enum_sinifi,
        values_callable=lambda e: [uye.value for uye in e],
        native_enum=False,
        length=40,
        validate_strings=True,
    )


Base = declarative_base()


class Kisi(Base):
    __tablename__ = 'kisiler'
    id = Column(Integer, primary_key=True)
    ad = Column(String(100), nullable=False)
    soyad = Column(String(100), nullable=False)
    kimlik_no = Column(String(20), unique=True)
    uyruk = Column(String(50))
    dogum_tarihi = Column(Date)
    cep_telefonu = Column(String(30))
    email = Column(String(120))
    adres = Column(Text)
    il = Column(String(50))
    ilce = Column(String(50))
    durum = Column(_enum_kolonu(KisiDurumu), nullable=False, default=KisiDurumu.AKTIF)
    uyelik_turu = Column(_enum_kolonu(UyelikTuru))
    aylik_gelir = Column(Float)
    hane_buyuklugu = Column(Integer)
    kayit_tarihi = Column(Date, nullable=False, default=date.today)
    notlar = Column(Text)
    version = Column(Integer, nullable=False, default=0)

    bagislar = relationship("Bagis", back_populates="bagisci")
    basvurular = relationship("YardimBasvurusu", back_populates="basvuru_sahibi")

    @property
    def ad_soyad(self) -> str:
        return f"{self.ad} {self.soyad}"


class Proje(Base):
    __tablename__ = 'projeler'
    __table_args__ = (
        CheckConstraint('ilerleme >= 0 AND ilerleme <= 100', name='ck_proje_ilerleme'),
    )
    id = Column(Integer, primary_key=True)
    ad = Column(String(200), nullable=False)
    yonetici = Column(String(100))
    durum = Column(_enum_kolonu(ProjeDurumu), nullable=False, default=ProjeDurumu.PLANLAMA)
    baslangic_tarihi = Column(Date)
    bitis_tarihi = Column(Date)
    butce = Column(Float, nullable=False, default=0.0)
    harcanan = Column(Float, nullable=False, default=0.0)
    ilerleme = Column(Integer, nullable=False, default=0)
    aciklama = Column(Text)
    version = Column(Integer, nullable=False, default=0)

    gorevler = relationship("Gorev", back_populates="proje", cascade="all, delete-orphan", order_by="Gorev.id")
    bagislar = relationship("Bagis", back_populates="proje")

    @property
    def toplanan_bagis(self) -> float:
        return round(sum(b.tutar for b in self.bagislar), 2)

    @property
    def butce_kullanim_orani(self) -> float:
        if not self.butce:
            return 0.0
        return round(self.harcanan / self.butce * 100, 2)


class Gorev(Base):
    __tablename__ = 'proje_gorevleri'
    id = Column(Integer, primary_key=True)
    proje_id = Column(Integer, ForeignKey('projeler.id'), nullable=False)
    baslik = Column(String(200), nullable=False)
    aciklama = Column(Text)
    sorumlu_id = Column(Integer, ForeignKey('kisiler.id'))
    son_tarih = Column(Date)
    oncelik = Column(_enum_kolonu(GorevOnceligi), nullable=False, default=GorevOnceligi.NORMAL)
    durum = Column(_enum_kolonu(GorevDurumu), nullable=False, default=GorevDurumu.YAPILACAK)

    proje = relationship("Proje", back_populates="gorevler")


class Bagis(Base):
    __tablename__ = 'bagislar'
    id = Column(Integer, primary_key=True)
    bagisci_id = Column(Integer, ForeignKey('kisiler.id'), nullable=False)
    tutar = Column(Float, nullable=False)
    para_birimi = Column(_enum_kolonu(ParaBirimi), nullable=False, default=ParaBirimi.TRY)
    bagis_turu = Column(_enum_kolonu(BagisTuru), nullable=False)
    tarih = Column(Date, nullable=False, default=date.today)
    aciklama = Column(Text)
    proje_id = Column(Integer, ForeignKey('projeler.id'))
    makbuz_no = Column(String(30), unique=True, nullable=False)

    bagisci = relationship("Kisi", back_populates="bagislar")
    proje = relationship("Proje", back_populates="bagislar")

    @property
    def bagisci_adi(self):
        return self.bagisci.ad_soyad if self.bagisci else None

    @property
    def proje_adi(self):
        return self.proje.ad if self.proje else None


class Odeme(Base):
    __tablename__ = 'odemeler'
    id = Column(Integer, primary_key=True)
    odeme_turu = Column(_enum_kolonu(OdemeTuru), nullable=False)
    kisi = Column(String(200), nullable=False)
    tutar = Column(Float, nullable=False)
    para_birimi = Column(_enum_kolonu(ParaBirimi), nullable=False, default=ParaBirimi.TRY)
    aciklama = Column(Text)
    odeme_yontemi = Column(_enum_kolonu(OdemeYontemi), nullable=False)
    odeme_tarihi = Column(Date, nullable=False, default=date.today)
    durum = Column(_enum_kolonu(OdemeDurumu), nullable=False, default=OdemeDurumu.BEKLEYEN)


class YardimBasvurusu(Base):
    __tablename__ = 'yardim_basvurulari'
    id = Column(Integer, primary_key=True)
    basvuru_sahibi_id = Column(Integer, ForeignKey('kisiler.id'), nullable=False)
    basvuru_turu = Column(_enum_kolonu(YardimTuru), nullable=False)
    talep_tutari = Column(Float, nullable=False)
    oncelik = Column(_enum_kolonu(BasvuruOnceligi), nullable=False, default=BasvuruOnceligi.ORTA)
    basvuru_tarihi = Column(Date, nullable=False, default=date.today)
    durum = Column(_enum_kolonu(BasvuruDurumu), nullable=False, default=BasvuruDurumu.BEKLEYEN)
    degerlendirme_notu = Column(Text)
    talep_detayi = Column(Text)
    odeme_id = Column(Integer, ForeignKey('odemeler.id'))
    baskan_onayi = Column(Boolean)
    baskan_onay_notu = Column(Text)
    version = Column(Integer, nullable=False, default=0)

    basvuru_sahibi = relationship("Kisi", back_populates="basvurular")
    odeme = relationship("Odeme")
    dosyalar = relationship("BasvuruDosyasi", back_populates="basvuru", cascade="all, delete-orphan", order_by="BasvuruDosyasi.id")

    @property
    def basvuru_sahibi_adi(self):
        return self.basvuru_sahibi.ad_soyad if self.basvuru_sahibi else None

    @property
    def asama(self) -> BasvuruAsamasi:
        """Durum ve başkan onayı alanlarından türetilen iş akışı aşaması."""
        if self.durum == BasvuruDurumu.BEKLEYEN:
            return BasvuruAsamasi.DEGERLENDIRME_BEKLIYOR
        if self.durum == BasvuruDurumu.INCELENEN:
            return BasvuruAsamasi.INCELEMEDE
        if self.durum == BasvuruDurumu.ONAYLANAN:
            if self.baskan_onayi is True and self.odeme_id is None:
                return BasvuruAsamasi.ODEME_BEKLIYOR
            return BasvuruAsamasi.BASKAN_ONAYI_BEKLIYOR
        if self.durum == BasvuruDurumu.TAMAMLANAN:
            return BasvuruAsamasi.TAMAMLANDI
        if self.durum == BasvuruDurumu.REDDEDILEN:
            return BasvuruAsamasi.REDDEDILDI
        return BasvuruAsamasi.BASKAN_REDDETTI


class BasvuruDosyasi(Base):
    __tablename__ = 'basvuru_dosyalari'
    __table_args__ = (UniqueConstraint('basvuru_id', 'ad', name='uq_basvuru_dosya_adi'),)
    id = Column(Integer, primary_key=True)
    basvuru_id = Column(Integer, ForeignKey('yardim_basvurulari.id'), nullable=False)
    ad = Column(String(255), nullable=False)
    tip = Column(String(100))
    boyut = Column(Integer)
    yol = Column(String(500), nullable=False)
    yuklenme_tarihi = Column(DateTime, default=datetime.now)

    basvuru = relationship("YardimBasvurusu", back_populates="dosyalar")


class Yorum(Base):
    __tablename__ = 'yorumlar'
    id = Column(Integer, primary_key=True)
    zaman = Column(DateTime, nullable=False, default=datetime.now)
    kullanici_adi = Column(String(100), nullable=False)
    icerik = Column(Text, nullable=False)
    entity_tipi = Column(_enum_kolonu(DenetimVarlikTuru), nullable=False)
    entity_id = Column(Integer, nullable=False, index=True)
    bahsedilenler = Column(JSON, default=list)


class DenetimKaydi(Base):
    __tablename__ = 'denetim_kayitlari'
    id = Column(Integer, primary_key=True)
    zaman = Column(DateTime, nullable=False, default=datetime.now)
    kullanici_adi = Column(String(100), nullable=False)
    eylem = Column(_enum_kolonu(DenetimEylemi), nullable=False)
    entity_tipi = Column(_enum_kolonu(DenetimVarlikTuru), nullable=False)
    entity_id = Column(Integer)
    aciklama = Column(Text, nullable=False)
    detaylar = Column(JSON)

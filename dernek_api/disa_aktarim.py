# Excel dışa/içe aktarım (openpyxl) ve PDF raporları (reportlab)
import io
import json
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from xml.sax.saxutils import escape

import openpyxl
from openpyxl.styles import Font
from pydantic import ValidationError
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import semalar
from .bicim import format_currency, format_date, parse_number_safe
from .config import settings
from .liste import normalize_turkish_chars

logger = logging.getLogger(__name__)

Sutunlar = Sequence[Tuple[str, str]]

KISI_SUTUNLARI: Sutunlar = [
    ("id", "ID"), ("ad", "Ad"), ("soyad", "Soyad"), ("kimlik_no", "Kimlik No"), ("uyruk", "Uyruk"),
    ("dogum_tarihi", "Doğum Tarihi"), ("cep_telefonu", "Cep Telefonu"), ("email", "E-posta"),
    ("il", "İl"), ("ilce", "İlçe"), ("adres", "Adres"), ("durum", "Durum"),
    ("uyelik_turu", "Üyelik Türü"), ("kayit_tarihi", "Kayıt Tarihi"),
]
BAGIS_SUTUNLARI: Sutunlar = [
    ("id", "ID"), ("makbuz_no", "Makbuz No"), ("bagisci_adi", "Bağışçı"), ("tutar", "Tutar"),
    ("para_birimi", "Para Birimi"), ("bagis_turu", "Bağış Türü"), ("tarih", "Tarih"),
    ("proje_adi", "Proje"), ("aciklama", "Açıklama"),
]
BASVURU_SUTUNLARI: Sutunlar = [
    ("id", "ID"), ("basvuru_sahibi_adi", "Başvuru Sahibi"), ("basvuru_turu", "Başvuru Türü"),
    ("talep_tutari", "Talep Tutarı"), ("oncelik", "Öncelik"), ("basvuru_tarihi", "Başvuru Tarihi"),
    ("durum", "Durum"), ("asama", "Aşama"), ("baskan_onayi", "Başkan Onayı"), ("odeme_id", "Ödeme No"),
]
ODEME_SUTUNLARI: Sutunlar = [
    ("id", "ID"), ("odeme_turu", "Ödeme Türü"), ("kisi", "Kişi/Kurum"), ("tutar", "Tutar"),
    ("para_birimi", "Para Birimi"), ("odeme_yontemi", "Ödeme Yöntemi"), ("odeme_tarihi", "Ödeme Tarihi"),
    ("durum", "Durum"), ("aciklama", "Açıklama"),
]

EXCEL_KAYNAKLARI = {
    "kisiler": ("Kişiler", KISI_SUTUNLARI),
    "bagislar": ("Bağışlar", BAGIS_SUTUNLARI),
    "basvurular": ("Yardım Başvuruları", BASVURU_SUTUNLARI),
    "odemeler": ("Ödemeler", ODEME_SUTUNLARI),
}


def _alan(kayit, alan: str):
    if isinstance(kayit, dict):
        return kayit.get(alan)
    return getattr(kayit, alan, None)


def excel_hucre_degeri(deger):
    if deger is None:
        return ""
    if isinstance(deger, bool):
        return "Evet" if deger else "Hayır"
    if hasattr(deger, "value"):
        return deger.value
    if isinstance(deger, (date, datetime)):
        return format_date(deger)
    if isinstance(deger, (dict, list)):
        return json.dumps(deger, ensure_ascii=False)
    return deger


def excel_olustur(sayfa_adi: str, sutunlar: Sutunlar, kayitlar: Iterable[Any]) -> openpyxl.Workbook:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sayfa_adi[:31]

    ws.append([etiket for _, etiket in sutunlar])
    for hucre in ws[1]:
        hucre.font = Font(bold=True)

    for kayit in kayitlar:
        ws.append([excel_hucre_degeri(_alan(kayit, alan)) for alan, _ in sutunlar])
    return wb


def excel_raporu_kaydet(kaynak: str, kayitlar: Iterable[Any]) -> Tuple[str, str]:
    """Raporu REPORTS_DIR altına kaydeder ve (dosya_adi, filepath) döndürür."""
    if kaynak not in EXCEL_KAYNAKLARI:
        raise ValueError(f"Desteklenmeyen rapor kaynağı: {kaynak}")
    sayfa_adi, sutunlar = EXCEL_KAYNAKLARI[kaynak]
    wb = excel_olustur(sayfa_adi, sutunlar, kayitlar)

    os.makedirs(settings.REPORTS_DIR, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    dosya_adi = f"{kaynak}_raporu_{timestamp}.xlsx"
    filepath = os.path.join(settings.REPORTS_DIR, dosya_adi)
    wb.save(filepath)
    logger.info(f"Excel raporu oluşturuldu: {filepath}")
    return dosya_adi, filepath


# --- EXCEL İÇE AKTARIM ---
KISI_ICE_AKTARIM_BASLIKLARI: Dict[str, List[str]] = {
    "ad": ["Ad", "Name"],
    "soyad": ["Soyad", "Surname"],
    "uyruk": ["Uyruk", "Nationality"],
    "dogum_tarihi": ["Doğum Tarihi", "BirthDate"],
    "kimlik_no": ["Kimlik Numarası", "Kimlik No", "Identity"],
    "email": ["Eposta", "E-posta", "Email", "Mail"],
    "cep_telefonu": ["Cep Telefonu", "GSM"],
    "il": ["Şehir", "İl", "City"],
    "ilce": ["İlçe", "Town"],
    "adres": ["Adres", "Address"],
    "aylik_gelir": ["Aylık Gelir", "MonthlyIncome"],
    "hane_buyuklugu": ["Hane Büyüklüğü", "FamilySize"],
    "uyelik_turu": ["Üyelik Türü", "MembershipType"],
    "notlar": ["Notlar", "Notes"],
}
_ZORUNLU_ALANLAR = ("ad", "soyad")
_TARIH_BICIMLERI = ("%d.%m.%Y", "%Y-%m-%d", "%d/%m/%Y")


def baslik_eslestir(basliklar: Sequence[Optional[str]]) -> Dict[str, int]:
    """Veritabanı alanı -> sütun indeksi. Önce birebir, sonra Türkçe karakterden bağımsız eşleşme."""
    temiz = [str(b).strip() if b is not None else "" for b in basliklar]
    normal = [normalize_turkish_chars(b) for b in temiz]
    eslesme: Dict[str, int] = {}
    for alan, adaylar in KISI_ICE_AKTARIM_BASLIKLARI.items():
        for aday in adaylar:
            if aday in temiz:
                eslesme[alan] = temiz.index(aday)
                break
        else:
            for aday in adaylar:
                n = normalize_turkish_chars(aday)
                if n in normal:
                    eslesme[alan] = normal.index(n)
                    break
    return eslesme


def _tarih_coz(deger) -> date:
    if isinstance(deger, datetime):
        return deger.date()
    if isinstance(deger, date):
        return deger
    metin = str(deger).strip()
    for bicim in _TARIH_BICIMLERI:
        try:
            return datetime.strptime(metin, bicim).date()
        except ValueError:
            continue
    raise ValueError(f"Geçersiz tarih: {metin}")


def _satir_degerleri(satir: Sequence[Any], eslesme: Dict[str, int]) -> Dict[str, Any]:
    veri: Dict[str, Any] = {}
    for alan, indeks in eslesme.items():
        deger = satir[indeks] if indeks < len(satir) else None
        if isinstance(deger, str):
            deger = deger.strip()
        if deger is None or deger == "":
            continue
        if alan == "dogum_tarihi":
            deger = _tarih_coz(deger)
        elif alan == "aylik_gelir":
            sayi = parse_number_safe(deger, varsayilan=float("nan"))
            if sayi != sayi:
                raise ValueError(f"Geçersiz aylık gelir: {deger}")
            deger = sayi
        elif alan == "hane_buyuklugu":
            sayi = parse_number_safe(deger, varsayilan=float("nan"))
            if sayi != sayi or sayi != int(sayi):
                raise ValueError(f"Geçersiz hane büyüklüğü: {deger}")
            deger = int(sayi)
        else:
            deger = str(deger)
        veri[alan] = deger
    return veri


def _dogrulama_mesaji(hata: ValidationError) -> str:
    parcalar = []
    for e in hata.errors():
        alan = ".".join(str(p) for p in e.get("loc", ()))
        parcalar.append(f"{alan}: {e.get('msg')}" if alan else str(e.get("msg")))
    return "; ".join(parcalar)


def kisi_excel_oku(icerik: bytes, mevcut_kimlik_nolari: Optional[Set[str]] = None) -> Dict[str, Any]:
    """
    Kişi listesi içeren Excel dosyasını okur ve doğrular.

    Dönen sözlük: kayitlar (geçerli KisiCreate nesneleri), hatalar ("Satır N: ..."),
    uyarilar ve toplam_satir. Zorunlu sütunlar yoksa ValueError fırlatır.
    """
    mevcut_kimlik_nolari = set(mevcut_kimlik_nolari or ())
    try:
        wb = openpyxl.load_workbook(io.BytesIO(icerik), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Excel dosyası okunamadı: {e}") from e

    try:
        ws = wb.active
        satirlar = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()

    if not satirlar or all(h in (None, "") for h in satirlar[0]):
        raise ValueError("Excel dosyası boş.")

    basliklar = satirlar[0]
    eslesme = baslik_eslestir(basliklar)
    eksik = [a for a in _ZORUNLU_ALANLAR if a not in eslesme]
    if eksik:
        raise ValueError(f"Zorunlu sütunlar bulunamadı: {', '.join(eksik)}")

    kullanilan = set(eslesme.values())
    uyarilar = [
        f"Eşleşmeyen sütun yok sayıldı: {b}"
        for i, b in enumerate(basliklar) if b not in (None, "") and i not in kullanilan
    ]

    kayitlar: List[semalar.KisiCreate] = []
    hatalar: List[str] = []
    toplam = 0
    dosyadaki_kimlikler: Set[str] = set()

    for satir_no, satir in enumerate(satirlar[1:], start=2):
        if all(h is None or (isinstance(h, str) and not h.strip()) for h in satir):
            continue
        toplam += 1
        try:
            veri = _satir_degerleri(satir, eslesme)
        except ValueError as e:
            hatalar.append(f"Satır {satir_no}: {e}")
            continue

        kimlik_no = veri.get("kimlik_no")
        if kimlik_no:
            if kimlik_no in mevcut_kimlik_nolari:
                hatalar.append(f"Satır {satir_no}: {kimlik_no} kimlik numarası sistemde zaten kayıtlı.")
                continue
            if kimlik_no in dosyadaki_kimlikler:
                hatalar.append(f"Satır {satir_no}: {kimlik_no} kimlik numarası dosyada tekrar ediyor.")
                continue

        try:
            kisi = semalar.KisiCreate(**veri)
        except ValidationError as e:
            hatalar.append(f"Satır {satir_no}: {_dogrulama_mesaji(e)}")
            continue

        if kimlik_no:
            dosyadaki_kimlikler.add(kimlik_no)
        kayitlar.append(kisi)

    return {"kayitlar": kayitlar, "hatalar": hatalar, "uyarilar": uyarilar, "toplam_satir": toplam}


# --- PDF RAPORLARI ---
_kayitli_font: Optional[str] = None


def _register_pdf_font(font_path: str) -> Optional[str]:
    """Türkçe karakterler için TrueType fontu kaydeder; yoksa varsayılan Helvetica kullanılır."""
    global _kayitli_font
    if _kayitli_font:
        return _kayitli_font
    if not font_path or not os.path.exists(font_path):
        return None
    try:
        pdfmetrics.registerFont(TTFont("DernekFont", font_path))
        _kayitli_font = "DernekFont"
        logger.info(f"PDF fontu kaydedildi: {font_path}")
    except Exception as e:
        logger.warning(f"PDF fontu yüklenemedi, varsayılan font kullanılacak: {e}")
    return _kayitli_font


class PDFRaporu:
    def __init__(self, font_name: Optional[str] = None):
        self.font_name = font_name or _register_pdf_font(settings.PDF_FONT_PATH) or "Helvetica"
        self.styles = getSampleStyleSheet()
        self._setup_styles()

    def _setup_styles(self):
        self.styles['Title'].fontName = self.font_name
        self.styles['Title'].fontSize = 18
        self.styles['Title'].alignment = TA_CENTER
        self.styles['Title'].spaceAfter = 8
        self.styles.add(ParagraphStyle(name='AltBaslik', parent=self.styles['Normal'], fontName=self.font_name,
                                       fontSize=10, alignment=TA_CENTER, textColor=HexColor('#555555'), spaceAfter=12))
        self.styles.add(ParagraphStyle(name='TabloBaslik', parent=self.styles['Normal'], fontName=self.font_name,
                                       fontSize=8, leading=10, alignment=TA_LEFT, textColor=HexColor('#ffffff')))
        self.styles.add(ParagraphStyle(name='TabloHucre', parent=self.styles['Normal'], fontName=self.font_name,
                                       fontSize=8, leading=10, alignment=TA_LEFT))
        self.styles.add(ParagraphStyle(name='Govde', parent=self.styles['Normal'], fontName=self.font_name,
                                       fontSize=11, leading=15, alignment=TA_LEFT, spaceAfter=6))
        self.styles.add(ParagraphStyle(name='Toplam', parent=self.styles['Normal'], fontName=self.font_name,
                                       fontSize=13, leading=16, alignment=TA_RIGHT, spaceBefore=10,
                                       textColor=HexColor('#0056b3')))

    def _p(self, metin, stil: str) -> Paragraph:
        return Paragraph(escape("" if metin is None else str(metin)), self.styles[stil])

    def tablo_raporu(self, baslik: str, alt_baslik: Optional[str], basliklar: Sequence[str], satirlar: Sequence[Sequence[Any]]) -> bytes:
        tampon = io.BytesIO()
        doc = SimpleDocTemplate(tampon, pagesize=landscape(A4), rightMargin=cm, leftMargin=cm, topMargin=cm, bottomMargin=cm,
                                title=baslik)
        story = [self._p(baslik, 'Title')]
        if alt_baslik:
            story.append(self._p(alt_baslik, 'AltBaslik'))
        story.append(self._p(f"Oluşturulma: {datetime.now().strftime('%d.%m.%Y %H:%M')}", 'AltBaslik'))

        if satirlar:
            tablo_verisi = [[self._p(b, 'TabloBaslik') for b in basliklar]]
            tablo_verisi += [[self._p(h, 'TabloHucre') for h in satir] for satir in satirlar]
            table = Table(tablo_verisi, colWidths=[doc.width / len(basliklar)] * len(basliklar), repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), HexColor('#2f5d8a')),
                ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [HexColor('#ffffff'), HexColor('#f3f6f9')]),
                ('GRID', (0, 0), (-1, -1), 0.5, HexColor('#cccccc')),
                ('LEFTPADDING', (0, 0), (-1, -1), 4),
                ('RIGHTPADDING', (0, 0), (-1, -1), 4),
            ]))
            story.append(table)
        else:
            story.append(Spacer(1, 0.5 * cm))
            story.append(self._p("Gösterilecek veri bulunamadı.", 'Govde'))

        doc.build(story)
        return tampon.getvalue()

    def bagis_makbuzu(self, bagis) -> bytes:
        tampon = io.BytesIO()
        doc = SimpleDocTemplate(tampon, pagesize=A4, rightMargin=2 * cm, leftMargin=2 * cm, topMargin=2 * cm,
                                bottomMargin=2 * cm, title=f"Bağış Makbuzu {bagis.makbuz_no}")
        satirlar = [
            ("Makbuz No", bagis.makbuz_no),
            ("Tarih", format_date(bagis.tarih)),
            ("Bağışçı", bagis.bagisci_adi or "-"),
            ("Bağış Türü", excel_hucre_degeri(bagis.bagis_turu)),
            ("Proje", bagis.proje_adi or "-"),
            ("Açıklama", bagis.aciklama or "-"),
        ]
        tablo = Table([[self._p(e, 'Govde'), self._p(d, 'Govde')] for e, d in satirlar], colWidths=[5 * cm, doc.width - 5 * cm])
        tablo.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.5, HexColor('#cccccc')),
            ('BACKGROUND', (0, 0), (0, -1), HexColor('#f3f6f9')),
        ]))
        story = [
            self._p("Bağış Makbuzu", 'Title'),
            Spacer(1, 0.5 * cm),
            tablo,
            self._p(f"Tutar: {format_currency(bagis.tutar, bagis.para_birimi)}", 'Toplam'),
            Spacer(1, 1 * cm),
            self._p("Bağışınız için teşekkür ederiz.", 'Govde'),
        ]
        doc.build(story)
        return tampon.getvalue()


def _tablo_satirlari(kayitlar: Iterable[Any], sutunlar: Sutunlar) -> List[List[Any]]:
    satirlar = []
    for kayit in kayitlar:
        satir = []
        for alan, _ in sutunlar:
            deger = _alan(kayit, alan)
            if alan in ("tutar", "talep_tutari") and deger is not None:
                satir.append(format_currency(deger, _alan(kayit, "para_birimi") or "TRY"))
            else:
                satir.append(excel_hucre_degeri(deger))
        satirlar.append(satir)
    return satirlar


def kisi_pdf(kisiler: Sequence[Any]) -> bytes:
    sutunlar = [s for s in KISI_SUTUNLARI if s[0] not in ("adres", "dogum_tarihi", "email")]
    return PDFRaporu().tablo_raporu(
        "Kişi Listesi", f"Toplam {len(kisiler)} kişi",
        [e for _, e in sutunlar], _tablo_satirlari(kisiler, sutunlar),
    )


def bagis_pdf(bagislar: Sequence[Any]) -> bytes:
    toplam = sum(_alan(b, "tutar") or 0 for b in bagislar)
    return PDFRaporu().tablo_raporu(
        "Bağış Raporu", f"Toplam {len(bagislar)} bağış - Toplam Tutar: {format_currency(toplam)}",
        [e for _, e in BAGIS_SUTUNLARI], _tablo_satirlari(bagislar, BAGIS_SUTUNLARI),
    )


def basvuru_pdf(basvurular: Sequence[Any]) -> bytes:
    return PDFRaporu().tablo_raporu(
        "Yardım Başvuruları Raporu", f"Toplam {len(basvurular)} başvuru",
        [e for _, e in BASVURU_SUTUNLARI], _tablo_satirlari(basvurular, BASVURU_SUTUNLARI),
    )


def bagis_makbuzu_pdf(bagis) -> bytes:
    return PDFRaporu().bagis_makbuzu(bagis)


PDF_KAYNAKLARI = {
    "kisiler": kisi_pdf,
    "bagislar": bagis_pdf,
    "basvurular": basvuru_pdf,
}

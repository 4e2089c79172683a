# Para, tarih ve genel metin biçimlendirme yardımcıları
import math
from datetime import date, datetime
from typing import Optional, Union

PARA_SEMBOLLERI = {"TRY": "₺", "USD": "$", "EUR": "€"}

Sayi = Union[int, float, str, None]


def _sayiya_cevir(deger: Sayi) -> Optional[float]:
    if deger is None:
        return 0.0
    if isinstance(deger, str):
        try:
            return float(deger.strip() or 0)
        except ValueError:
            return None
    try:
        return float(deger)
    except (TypeError, ValueError):
        return None


def format_number(deger: Sayi, basamak: Optional[int] = None) -> str:
    """
    Türkçe sayı biçimi: binlik ayırıcı nokta, ondalık ayırıcı virgül (1.234,56).
    basamak verilmezse en fazla üç ondalık yazılır ve sondaki sıfırlar atılır (1234 -> 1.234).
    """
    sayi = _sayiya_cevir(deger)
    if sayi is None or not math.isfinite(sayi):
        return "-"
    if basamak is None:
        ingilizce = f"{sayi:,.3f}".rstrip("0").rstrip(".")
    else:
        ingilizce = f"{sayi:,.{basamak}f}"
    return ingilizce.replace(",", "X").replace(".", ",").replace("X", ".")


def format_currency(deger: Sayi, para_birimi: str = "TRY") -> str:
    metin = format_number(deger, 2)
    if metin == "-":
        return metin
    para_birimi = getattr(para_birimi, "value", para_birimi)
    sembol = PARA_SEMBOLLERI.get(para_birimi)
    if sembol is None:
        return f"{metin} {para_birimi}"
    if metin.startswith("-"):
        return f"-{sembol}{metin[1:]}"
    return f"{sembol}{metin}"


def _tarihe_cevir(deger) -> Optional[date]:
    if not deger:
        return None
    if isinstance(deger, datetime):
        return deger.date()
    if isinstance(deger, date):
        return deger
    if isinstance(deger, (int, float)):
        # milisaniye cinsinden zaman damgası
        return datetime.fromtimestamp(deger / 1000).date()
    try:
        return datetime.fromisoformat(str(deger).strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_date(deger) -> str:
    tarih = _tarihe_cevir(deger)
    if tarih is None:
        return "-"
    return tarih.strftime("%d.%m.%Y")


def format_date_iso(deger=None) -> str:
    tarih = _tarihe_cevir(deger if deger is not None else date.today())
    return tarih.isoformat() if tarih else ""


def parse_number_safe(deger, varsayilan: float = 0.0) -> float:
    """Türkçe ('1.234,56') veya standart ('1234.56') yazımlı sayıyı güvenle çözer."""
    if isinstance(deger, bool):
        return float(deger)
    if isinstance(deger, (int, float)):
        return float(deger) if math.isfinite(deger) else varsayilan
    if deger is None:
        return varsayilan
    metin = str(deger).strip()
    if "," in metin:
        metin = metin.replace(".", "").replace(",", ".")
    try:
        sayi = float(metin)
    except ValueError:
        return varsayilan
    return sayi if math.isfinite(sayi) else varsayilan


def join_name(ad: Optional[str] = None, soyad: Optional[str] = None) -> str:
    return f"{ad or ''} {soyad or ''}".strip() or "-"


def truncate(metin: Optional[str], max_uzunluk: int = 120) -> str:
    metin = metin or ""
    if len(metin) <= max_uzunluk:
        return metin
    return f"{metin[:max(0, max_uzunluk - 1)]}…"

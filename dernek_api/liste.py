"""
Liste filtreleme, sıralama ve sayfalama için saf yardımcı fonksiyonlar.

Fonksiyonlar hem sözlüklerle hem de nitelik taşıyan nesnelerle (ORM kayıtları,
Pydantic modelleri) çalışır ve girdiyi değiştirmez.
"""
import enum
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

TURK_ALFABESI = "abcçdefgğhıijklmnoöpqrsştuüvwxyz"
_ALFABE_SIRASI = {harf: sira for sira, harf in enumerate(TURK_ALFABESI)}

Anahtar = Union[str, Callable[[Any], Any]]


@dataclass
class SiralamaOlcutu:
    key: Anahtar
    direction: str = "asc"
    nulls_last: bool = True
    comparator: Optional[Callable[[Any, Any], int]] = None


@dataclass
class ListeSonucu:
    items: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


def tr_lower(metin: str) -> str:
    """Türkçe kurallara göre küçük harfe çevirir (I -> ı, İ -> i)."""
    return metin.replace("I", "ı").replace("İ", "i").lower()


def _harf_anahtari(harf: str):
    if harf.isspace():
        return (0, 0)
    if harf.isdigit():
        return (2, ord(harf))
    if harf in _ALFABE_SIRASI:
        return (3, _ALFABE_SIRASI[harf])
    if harf.isalpha():
        return (3, len(TURK_ALFABESI) + ord(harf))
    # noktalama ve diğer işaretler
    return (1, ord(harf))


def tr_sort_key(metin: str):
    """Boşluk, noktalama, rakam ve harfler bu sırayla; harfler Türk alfabesine göre dizilir."""
    return tuple(_harf_anahtari(harf) for harf in tr_lower(metin))


def normalize_turkish_chars(metin: str) -> str:
    """Türkçe karakterleri ASCII karşılıklarına çevirip küçük harfe indirger."""
    if not metin:
        return ""
    ceviri = str.maketrans("ıİşŞğĞüÜöÖçÇ", "iissgguuoocc")
    return " ".join(metin.translate(ceviri).lower().split())


def _duz(deger):
    # str tabanlı enumlar görünen değerleriyle karşılaştırılır
    return deger.value if isinstance(deger, enum.Enum) else deger


def _bos_mu(deger) -> bool:
    return deger is None


def _sayi_mi(deger) -> bool:
    return isinstance(deger, (int, float)) and not isinstance(deger, bool)


def varsayilan_karsilastirici(a, b) -> int:
    a, b = _duz(a), _duz(b)
    if _bos_mu(a) and _bos_mu(b):
        return 0
    if _bos_mu(a):
        return -1
    if _bos_mu(b):
        return 1
    if _sayi_mi(a) and _sayi_mi(b):
        return (a > b) - (a < b)
    if not isinstance(a, str) and type(a) is type(b):
        # tarih gibi kendi içinde sıralanabilen değerler
        try:
            return (a > b) - (a < b)
        except TypeError:
            pass
    ka, kb = tr_sort_key(str(a)), tr_sort_key(str(b))
    return (ka > kb) - (ka < kb)


def deger_al(oge, anahtar: Anahtar):
    if callable(anahtar):
        return anahtar(oge)
    if isinstance(oge, dict):
        return oge.get(anahtar)
    return getattr(oge, anahtar, None)


def _olcut(tanim) -> SiralamaOlcutu:
    if isinstance(tanim, SiralamaOlcutu):
        return tanim
    if isinstance(tanim, dict):
        return SiralamaOlcutu(**tanim)
    return SiralamaOlcutu(key=tanim)


def sort_by(items: List[Any], olcutler_girdi) -> List[Any]:
    """Çoklu alan sıralama; boş değerler varsayılan olarak her iki yönde de sona atılır."""
    if not items:
        return items
    if not isinstance(olcutler_girdi, (list, tuple)):
        olcutler_girdi = [olcutler_girdi]
    olcutler = [_olcut(s) for s in olcutler_girdi]

    def karsilastir(a, b) -> int:
        for olcut in olcutler:
            av = deger_al(a, olcut.key)
            bv = deger_al(b, olcut.key)
            if olcut.nulls_last:
                if _bos_mu(av) and not _bos_mu(bv):
                    return 1
                if not _bos_mu(av) and _bos_mu(bv):
                    return -1
            sonuc = (olcut.comparator or varsayilan_karsilastirici)(av, bv)
            if olcut.direction == "desc":
                sonuc = -sonuc
            if sonuc != 0:
                return sonuc
        return 0

    return sorted(items, key=cmp_to_key(karsilastir))


def text_filter(items: List[Any], query: Optional[str], pickers: Sequence[Anahtar]) -> List[Any]:
    """Verilen alanlarda büyük/küçük harf duyarsız 'içerir' araması yapar."""
    q = tr_lower(str(query if query is not None else "").strip())
    if not q:
        return items

    def eslesir(oge) -> bool:
        for picker in pickers:
            deger = deger_al(oge, picker)
            if _bos_mu(deger):
                continue
            if q in tr_lower(str(_duz(deger))):
                return True
        return False

    return [oge for oge in items if eslesir(oge)]


def where(items: List[Any], predicate: Optional[Callable[[Any], bool]]) -> List[Any]:
    if not predicate:
        return items
    return [oge for oge in items if predicate(oge)]


filter_items = where


def sort_items(items: Optional[List[Any]], comparator: Callable[[Any, Any], int]) -> List[Any]:
    return sorted(items or [], key=cmp_to_key(comparator))


def paginate(items: List[Any], page: Optional[float] = 1, page_size: Optional[float] = 10) -> ListeSonucu:
    page = max(1, math.floor(page or 1))
    page_size = max(1, math.floor(page_size or 10))
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    start = (page - 1) * page_size
    return ListeSonucu(items[start:start + page_size], total, page, page_size, total_pages)


def filter_sort_paginate(
    items: Iterable[Any],
    search: Optional[Dict[str, Any]] = None,
    predicate: Optional[Callable[[Any], bool]] = None,
    sort=None,
    pagination: Optional[Dict[str, Any]] = None,
) -> ListeSonucu:
    """Filtrele -> ara -> sırala -> sayfala."""
    sonuc = list(items or [])

    if predicate:
        sonuc = where(sonuc, predicate)

    if search and search.get("query"):
        sonuc = text_filter(sonuc, search["query"], search.get("pickers", []))

    if sort:
        sonuc = sort_by(sonuc, sort)

    if pagination:
        return paginate(sonuc, pagination.get("page"), pagination.get("page_size"))

    # sayfalama yoksa yine de toplam döner
    return ListeSonucu(sonuc, len(sonuc), 1, len(sonuc) or 1, 1)


def distinct_by(items: Iterable[Any], key_selector: Callable[[Any], Any]) -> List[Any]:
    gorulen = set()
    cikti = []
    for oge in items:
        anahtar = key_selector(oge)
        if anahtar not in gorulen:
            gorulen.add(anahtar)
            cikti.append(oge)
    return cikti


def group_by(items: Iterable[Any], key_selector: Callable[[Any], Any]) -> Dict[Any, List[Any]]:
    gruplar: Dict[Any, List[Any]] = {}
    for oge in items:
        gruplar.setdefault(key_selector(oge), []).append(oge)
    return gruplar


def siralama_parse(siralama: Optional[str], izinli: Iterable[str]) -> List[SiralamaOlcutu]:
    """'-tarih,tutar' biçimindeki sıralama parametresini ölçütlere çevirir.

    İzin verilmeyen alanlar ValueError üretir.
    """
    if not siralama:
        return []
    izinli = set(izinli)
    olcutler = []
    for parca in siralama.split(","):
        parca = parca.strip()
        if not parca:
            continue
        yon = "desc" if parca.startswith("-") else "asc"
        alan = parca.lstrip("+-")
        if alan not in izinli:
            raise ValueError(f"Geçersiz sıralama alanı: {alan}")
        olcutler.append(SiralamaOlcutu(key=alan, direction=yon))
    return olcutler

from datetime import datetime
import logging
import os

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from .. import akilli_arama, disa_aktarim, modeller, semalar, veritabani
from ..api_servisler import PanoServisi
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/raporlar", tags=["Raporlar"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_KAYNAK_MODELLERI = {
    "kisiler": modeller.Kisi,
    "bagislar": modeller.Bagis,
    "basvurular": modeller.YardimBasvurusu,
    "odemeler": modeller.Odeme,
}


def _kaynak_kayitlari(db: Session, kaynak: str):
    model = _KAYNAK_MODELLERI.get(kaynak)
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bilinmeyen rapor kaynağı: {kaynak}. Geçerli kaynaklar: {', '.join(_KAYNAK_MODELLERI)}"
        )
    return db.query(model).order_by(model.id).all()


@router.get("/dashboard", response_model=semalar.DashboardYaniti)
def get_dashboard(db: Session = Depends(veritabani.get_db)):
    return PanoServisi(db).dashboard()


@router.get("/analitik", response_model=semalar.AnalitikYaniti)
def get_analitik(db: Session = Depends(veritabani.get_db)):
    return PanoServisi(db).analitik()


@router.post("/analitik/ozet", response_model=semalar.AnalitikOzet)
def get_analitik_ozeti(db: Session = Depends(veritabani.get_db)):
    return akilli_arama.analitik_ozet(PanoServisi(db).analitik())


@router.post("/excel/{kaynak}", response_model=semalar.RaporDosyasiYaniti)
def generate_excel_raporu(kaynak: str, db: Session = Depends(veritabani.get_db)):
    kayitlar = _kaynak_kayitlari(db, kaynak)
    try:
        dosya_adi, filepath = disa_aktarim.excel_raporu_kaydet(kaynak, kayitlar)
    except OSError as e:
        logger.error(f"Excel raporu yazılamadı: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Rapor oluşturulurken beklenmedik bir hata oluştu: {e}")
    return {
        "message": f"Rapor başarıyla oluşturuldu: {dosya_adi}",
        "dosya_adi": dosya_adi,
        "filepath": filepath,
    }


@router.get("/indir/{dosya_adi}", status_code=status.HTTP_200_OK)
def download_rapor(dosya_adi: str):
    if os.path.basename(dosya_adi) != dosya_adi or not dosya_adi.endswith(".xlsx"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Geçersiz dosya adı.")
    filepath = os.path.join(settings.REPORTS_DIR, dosya_adi)
    if not os.path.exists(filepath):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rapor dosyası bulunamadı.")
    return FileResponse(path=filepath, filename=dosya_adi, media_type=XLSX_MEDIA_TYPE)


@router.get("/pdf/{kaynak}")
def generate_pdf_raporu(kaynak: str, db: Session = Depends(veritabani.get_db)):
    olusturucu = disa_aktarim.PDF_KAYNAKLARI.get(kaynak)
    if olusturucu is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"PDF raporu desteklenmeyen kaynak: {kaynak}"
        )
    kayitlar = _kaynak_kayitlari(db, kaynak)
    try:
        icerik = olusturucu(kayitlar)
    except Exception as e:
        logger.error(f"PDF raporu oluşturulurken hata: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"PDF oluşturulurken beklenmedik bir hata oluştu: {e}")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Response(
        content=icerik,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{kaynak}_raporu_{timestamp}.pdf"'}
    )

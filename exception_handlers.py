import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette import status

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"

FIELD_LABELS = {
    "name": "Nama",
    "email": "Email",
    "password": "Password",
    "phone": "Nomor HP",
    "current_password": "Password lama",
    "new_password": "Password baru",
    "confirm_password": "Konfirmasi password",
    "refresh_token": "Refresh token",
    "otp": "OTP",
    "reset_token": "Token reset",
    "unit": "Satuan",
    "price_per_unit": "Harga",
    "stock": "Stok",
    "description": "Deskripsi",
    "selling_price": "Harga jual",
    "materials": "Bahan",
    "material_id": "Bahan",
    "product_id": "Produk",
    "quantity": "Quantity",
    "unit_price": "Harga satuan",
    "customer_name": "Nama customer",
    "notes": "Catatan",
    "date": "Tanggal",
    "category": "Kategori",
    "amount": "Jumlah",
    "skip": "Skip",
    "limit": "Limit",
    "start_date": "Tanggal mulai",
    "end_date": "Tanggal akhir",
    "from_date": "Tanggal mulai",
    "to_date": "Tanggal akhir",
}

NUMBER_ERRORS = {
    "int_parsing", "int_type", "int_from_float",
    "decimal_parsing", "decimal_type", "float_parsing", "float_type", "finite_number",
}
DATE_ERRORS = {
    "datetime_parsing", "datetime_type", "datetime_from_date_parsing",
    "date_parsing", "date_type", "date_from_datetime_parsing",
}


def _field_label(loc) -> str:
    for part in reversed(loc):
        if isinstance(part, str) and part not in ("body", "query", "path"):
            return FIELD_LABELS.get(part, part)
    return "Data"


def localize_error(error: dict) -> str:
    """Turns one pydantic error into the Indonesian message shown to users."""
    error_type = error.get("type", "")
    label = _field_label(error.get("loc", ()))
    ctx = error.get("ctx") or {}

    if error_type in ("value_error", "assertion_error"):
        message = str(error.get("msg", ""))
        for prefix in ("Value error, ", "Assertion failed, "):
            if message.startswith(prefix):
                return message[len(prefix):]
        return message
    if error_type == "missing":
        return f"{label} wajib diisi"
    if error_type == "string_too_short":
        return f"{label} minimal {ctx.get('min_length')} karakter"
    if error_type == "string_too_long":
        return f"{label} maksimal {ctx.get('max_length')} karakter"
    if error_type in ("greater_than_equal", "greater_than"):
        return f"{label} minimal {ctx.get('ge', ctx.get('gt'))}"
    if error_type in ("less_than_equal", "less_than"):
        return f"{label} maksimal {ctx.get('le', ctx.get('lt'))}"
    if error_type in ("enum", "literal_error"):
        return f"{label} tidak valid"
    if error_type in NUMBER_ERRORS:
        return f"{label} harus berupa angka"
    if error_type in DATE_ERRORS:
        return f"{label} harus berupa tanggal"
    if error_type in ("string_type", "bool_type", "bool_parsing", "list_type"):
        return f"{label} tidak valid"
    if error_type == "json_invalid":
        return "Body JSON tidak valid"
    if error_type in ("model_attributes_type", "dict_type", "model_type"):
        return "Body request tidak valid"
    return f"{label} tidak valid"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    extra = [str(e["loc"][-1]) for e in errors if e.get("type") == "extra_forbidden"]
    if extra:
        detail = f"Field tidak dikenal: {', '.join(extra)}"
    elif errors:
        detail = localize_error(errors[0])
    else:
        detail = "Data tidak valid"

    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, detail)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Data bentrok dengan data yang sudah ada"},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": SERVER_ERROR_MESSAGE},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": SERVER_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

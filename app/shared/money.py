from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext, localcontext

TWOPLACES = Decimal("0.01")
# Dígitos significativos para importes y sus productos (precio x cantidad)
MONEY_PRECISION = 50


def money_context():
    """Contexto decimal para aritmética de importes sin redondeo silencioso"""
    ctx = getcontext().copy()
    ctx.prec = MONEY_PRECISION
    return localcontext(ctx)


def to_money(value) -> Decimal:
    """Convertir a Decimal con 2 decimales; None o "" -> 0.00"""
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise ValueError("Monto inválido")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Monto inválido: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Monto inválido: {value!r}")
    with money_context():
        try:
            return amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError(f"Monto fuera de rango: {value!r}")


def money_str(value) -> str:
    """Representación almacenada en documentos (JSON no tiene decimales exactos)"""
    return str(to_money(value))

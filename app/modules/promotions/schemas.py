# app/modules/promotions/schemas.py
from pydantic import BaseModel, Field, validator, root_validator
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money
from app.shared.schemas.enums import PromotionType

# ===== REQUEST SCHEMAS =====

class GiftItemCreate(BaseModel):
    """Regalo fijo de una promoción PACK"""
    product_id: int = Field(..., gt=0, description="ID del producto de regalo")
    quantity: int = Field(..., gt=0, description="Cantidad de regalo")

class PromotionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Nombre de la promoción")
    description: Optional[str] = None
    buy_quantity: int = Field(..., gt=0, description="Unidades del producto principal que activan la promoción")
    main_product_id: int = Field(..., gt=0, description="Producto principal")
    pack_price: Optional[Money] = Field(None, ge=0, description="Precio del paquete promocional")
    allow_stack_with_discounts: bool = False
    active: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('El nombre es obligatorio')
        return v.strip()

    @root_validator(skip_on_failure=True)
    def validate_dates(cls, values):
        valid_from = values.get('valid_from')
        valid_until = values.get('valid_until')
        if valid_from and valid_until and valid_until <= valid_from:
            raise ValueError('La fecha de fin debe ser posterior a la fecha de inicio')
        return values

class PackPromotionCreate(PromotionBase):
    """Promoción fija: regalos conocidos al definir la promoción"""
    type: Literal["PACK"]
    gift_items: List[GiftItemCreate] = Field(..., min_length=1)

class BuyGetFreePromotionCreate(PromotionBase):
    """Promoción surtido: cantidad libre que se elige al completar el pedido"""
    type: Literal["BUY_GET_FREE"]
    free_quantity: int = Field(..., gt=0, description="Unidades a bonificar (surtido)")

PromotionCreate = Annotated[
    Union[PackPromotionCreate, BuyGetFreePromotionCreate],
    Field(discriminator="type")
]

class AssortmentSelection(BaseModel):
    """Línea del surtido elegido por el administrador"""
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)

class AssortmentRequest(BaseModel):
    selections: List[AssortmentSelection] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "selections": [
                    {"product_id": 21, "quantity": 3},
                    {"product_id": 22, "quantity": 2}
                ]
            }
        }

# ===== RESPONSE SCHEMAS =====

class ProductSummary(BaseModel):
    id: int
    name: str
    price: Money
    stock: int

    class Config:
        from_attributes = True

class GiftItemResponse(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    quantity: int

class PromotionResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    type: PromotionType
    buy_quantity: int
    main_product: ProductSummary
    free_quantity: int
    gift_items: List[GiftItemResponse]
    pack_price: Optional[Money]
    allow_stack_with_discounts: bool
    requires_assortment_selection: bool
    active: bool
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]
    is_valid: bool
    created_at: Optional[datetime] = None

class PromotionListResponse(BaseResponse):
    promotions: List[PromotionResponse]
    total: int

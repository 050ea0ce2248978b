# receipt_recon/models/receipt.py

"""
Canonical receipt schema.

Every attribute the receipts service is known to return is enumerated here
with a default of None. Attributes are only ever ADDED: a field that is no
longer populated stays in place with a "DEPRECATED <date>" comment so files
written by older versions keep loading.

Adding a field means:
  1. add it to the model below
  2. add a changelog line
  3. bump RECEIPT_SCHEMA_VERSION

Changelog
  1.0.0  base
  1.0.1  + Coupon: upcnumberCoupon, amountCoupon
  1.0.2  + Coupon: couponNumber, associatedItemNumber, unitCoupon
  1.0.3  + Coupon: taxflagCoupon, voidflagCoupon, refundflagCoupon
  1.0.4  + Receipt: warehouseAreaCode, warehousePhone
  1.0.5  + Item: itemUPCNumber, refundFlag, resaleFlag, voidFlag
  1.0.6  + Receipt: invoiceNumber, sequenceNumber, currencyCode
         + Tender: storedValueBucket
"""

from typing import Any
from pydantic import BaseModel, Field

RECEIPT_SCHEMA_VERSION = "1.0.6"
SCHEMA_VERSION_KEY = "__schemaVersion"


# ============================================
# Nested structures
# ============================================

class Item(BaseModel):
    """A receipt line item."""

    itemNumber: Any = None
    itemUPCNumber: Any = None
    itemDescription01: Any = None
    itemDescription02: Any = None
    frenchItemDescription1: Any = None
    frenchItemDescription2: Any = None
    itemIdentifier: Any = None
    itemDepartmentNumber: Any = None
    transDepartmentNumber: Any = None
    itemUnitPriceAmount: Any = None
    unit: Any = None
    amount: Any = None
    taxFlag: Any = None
    refundFlag: Any = None
    resaleFlag: Any = None
    voidFlag: Any = None
    merchantID: Any = None
    entryMethod: Any = None
    fuelUnitQuantity: Any = None
    fuelUomCode: Any = None
    fuelUomDescription: Any = None
    fuelUomDescriptionFr: Any = None
    fuelGradeCode: Any = None
    fuelGradeDescription: Any = None
    fuelGradeDescriptionFr: Any = None

    class Config:
        extra = "allow"


class Coupon(BaseModel):
    """A coupon applied on the receipt."""

    couponNumber: Any = None
    upcnumberCoupon: Any = None
    associatedItemNumber: Any = None
    unitCoupon: Any = None
    amountCoupon: Any = None
    taxflagCoupon: Any = None
    voidflagCoupon: Any = None
    refundflagCoupon: Any = None

    class Config:
        extra = "allow"


class SubTaxes(BaseModel):
    """Per tax-code breakdown. A single object, not a sequence."""

    tax1: Any = None
    tax2: Any = None
    tax3: Any = None
    tax4: Any = None
    aTaxPercent: Any = None
    aTaxLegend: Any = None
    aTaxAmount: Any = None
    aTaxPrintCode: Any = None
    aTaxPrintCodeFR: Any = None
    aTaxIdentifierCode: Any = None
    bTaxPercent: Any = None
    bTaxLegend: Any = None
    bTaxAmount: Any = None
    bTaxPrintCode: Any = None
    bTaxPrintCodeFR: Any = None
    bTaxIdentifierCode: Any = None
    cTaxPercent: Any = None
    cTaxLegend: Any = None
    cTaxAmount: Any = None
    cTaxIdentifierCode: Any = None
    dTaxPercent: Any = None
    dTaxLegend: Any = None
    dTaxAmount: Any = None
    dTaxPrintCode: Any = None
    dTaxPrintCodeFR: Any = None
    dTaxIdentifierCode: Any = None
    uTaxLegend: Any = None
    uTaxAmount: Any = None
    uTaxableAmount: Any = None

    class Config:
        extra = "allow"


class Tender(BaseModel):
    """A payment tender."""

    tenderTypeCode: Any = None
    tenderSubTypeCode: Any = None
    tenderTypeName: Any = None
    tenderTypeNameFr: Any = None
    tenderDescription: Any = None
    amountTender: Any = None
    displayAccountNumber: Any = None
    sequenceNumber: Any = None
    approvalNumber: Any = None
    responseCode: Any = None
    transactionID: Any = None
    merchantID: Any = None
    entryMethod: Any = None
    storedValueBucket: Any = None
    tenderAcctTxnNumber: Any = None
    tenderAuthorizationCode: Any = None
    tenderEntryMethodDescription: Any = None
    walletType: Any = None
    walletId: Any = None

    class Config:
        extra = "allow"


# ============================================
# Receipt
# ============================================

class Receipt(BaseModel):
    """A canonical in-warehouse receipt."""

    schema_version: str = Field(default=RECEIPT_SCHEMA_VERSION, alias=SCHEMA_VERSION_KEY)

    documentType: Any = None
    receiptType: Any = None
    membershipNumber: Any = None  # required: partition key
    transactionType: Any = None
    transactionDateTime: Any = None  # required: sort key
    transactionDate: Any = None
    warehouseShortName: Any = None
    warehouseNumber: Any = None  # required: barcode reconstruction
    warehouseName: Any = None
    warehouseAddress1: Any = None
    warehouseAddress2: Any = None
    warehouseCity: Any = None
    warehouseState: Any = None
    warehouseCountry: Any = None
    warehousePostalCode: Any = None
    warehouseAreaCode: Any = None
    warehousePhone: Any = None
    companyNumber: Any = None
    invoiceNumber: Any = None
    sequenceNumber: Any = None
    transactionBarcode: Any = None  # required: identity
    totalItemCount: Any = None
    instantSavings: Any = None
    subTotal: Any = None
    taxes: Any = None
    total: Any = None
    currencyCode: Any = None
    registerNumber: Any = None  # required: barcode reconstruction
    transactionNumber: Any = None  # required: barcode reconstruction
    operatorNumber: Any = None

    itemArray: list[Item] = Field(default_factory=list)
    couponArray: list[Coupon] = Field(default_factory=list)
    subTaxes: SubTaxes = Field(default_factory=SubTaxes)
    tenderArray: list[Tender] = Field(default_factory=list)

    class Config:
        extra = "allow"
        populate_by_name = True

    def to_dict(self) -> dict:
        """Serializable form, keyed exactly as persisted."""
        return self.model_dump(by_alias=True)

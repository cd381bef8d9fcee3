"""Column alias tables, one per (brand, entity).

Each table maps a logical field name to the ordered header spellings seen
in that brand's exports; earlier spellings win.  Tables are read-only so
a mapper can never alter them at runtime.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

AliasTable = Mapping[str, tuple[str, ...]]


def _table(**fields: tuple[str, ...]) -> AliasTable:
    return MappingProxyType(dict(fields))


# ---------------------------------------------------------------------------
# Products: Playmobil and Kivos share the Greek price-list layout
# ---------------------------------------------------------------------------

_PRICE_LIST_PRODUCT: dict[str, tuple[str, ...]] = {
    "productCode": ("ΚΩΔΙΚΟΣ ΠΡΟΪΟΝΤΟΣ", "ΚΩΔΙΚΟΣ", "Product Code", "ProductCode", "Code"),
    "description": ("ΠΕΡΙΓΡΑΦΗ", "Description", "Product Description"),
    "descriptionFull": ("Description",),
    "supplierBrand": ("Brand",),
    "category": ("Κατηγορία είδους", "Category"),
    "mm": ("MM",),
    "packaging": ("ΣΥΣΚΕΥΑΣΙΑ", "Package"),
    "piecesPerPack": ("Pieces per pack", "Pieces Per Pack", "ΤΕΜΑΧΙΑ ΑΝΑ ΣΥΣΚΕΥΑΣΙΑ"),
    "piecesPerBox": (
        "ΤΕΜΑΧΙΑ ΑΝΑ ΚΟΥΤΙ",
        "ΤΕΜΑΧΙΑ ΑΝΑ ΚΟΥΤΙ/ΤΕΜ.",
        "Pieces per box",
        "Pieces Per Box",
    ),
    "piecesPerCarton": ("ΤΕΜΑΧΙΑ ΑΝΑ ΚΙΒΩΤΙΟ", "Pieces per carton", "Pieces Per Carton"),
    "wholesalePrice": (
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n  ΕΥΡΩ",
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n ΕΥΡΩ",
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ ΕΥΡΩ",
        "Wh Price",
        "Wholesales Price",
        "Wholesale Price",
    ),
    "offerPrice": (
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n  ΠΡΟΣΦΟΡΑΣ ΕΥΡΩ",
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ\n ΠΡΟΣΦΟΡΑΣ ΕΥΡΩ",
        "ΤΙΜΗ ΤΕΜΑΧΙΟΥ ΠΡΟΣΦΟΡΑΣ ΕΥΡΩ",
        "Offer Price",
    ),
    "srp": ("SRP", "Suggested Retail Price"),
    "barcodeUnit": ("BARCODE ΤΕΜΑΧΙΟΥ", "Barcode"),
    "barcodeBox": ("BARCODE ΚΟΥΤΙΟΥ",),
    "barcodeCarton": ("BARCODE ΚΙΒΩΤΙΟΥ",),
    "discount": ("Discount",),
    "discountEndsAt": ("Discount.End.Date", "Discount End Date"),
    "productUrl": ("Product Url",),
    "frontCoverCloudinary": ("Cloudinary Image Url", "Cloudinary Url"),
    "frontCoverLegacy": ("Product Image Url", "Image Url", "Front Cover"),
}

PLAYMOBIL_PRODUCT = _table(
    **_PRICE_LIST_PRODUCT,
    launchDate=("Launch Month", "Launch Date"),
    playingTheme=("Playing Theme",),
    cataloguePage=("Catalogue Page",),
    suggestedAge=("Suggested playing Age",),
    gender=("Gender",),
    availableStock=("Available Stock GR",),
    isActive=("IsActive", "Active"),
)

KIVOS_PRODUCT = _table(**_PRICE_LIST_PRODUCT)

JOHN_PRODUCT = _table(
    productCode=(
        "ΚΩΔ.", "Κωδ.", "ΚΩΔΙΚΟΣ", "ΚΩΔΙΚΟΣ ΠΡΟΪΟΝΤΟΣ", "ΚΩΔ", "Κωδικός",
        "Product Code", "Code",
    ),
    barcode=("Κωδ.Barcode", "Barcode"),
    generalCategory=("ΓΕΝΙΚΗ ΚΑΤΗΓΟΡΙΑ",),
    subCategory=("ΥΠΟΚΑΤΗΓΟΡΙΑ",),
    description=("Ελληνική Περιγραφή", "Περιγραφή", "Description"),
    packaging=("Συσκευασία",),
    priceList=("Τιμή τιμοκαταλόγου", "Τιμή τιμ/γου", "Price List"),
    wholesalePrice=("Χονδρική Τιμή", "Wholesale Price"),
    srp=("Προτεινόμενη Λιανική Τιμή", "Λιανική Τιμή", "SRP", "Suggested Retail Price"),
    productDimensions=("Διαστάσεις Προϊόντος (cm)", "Διαστάσεις Προϊόντος"),
    packageDimensions=("Διαστάσεις Συσκευασίας (cm)", "Διαστάσεις Συσκευασίας"),
    frontCover=("Cloudinary Url", "Cloudinary URL", "Φωτογραφία", "Photo"),
)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

PLAYMOBIL_CUSTOMER = _table(
    customerCode=("Customer Code",),
    name=("Name",),
    name3=("Name 3",),
    street=("Street",),
    postalCode=("Postal Code",),
    city=("City",),
    telephone1=("Telephone 1",),
    telephone2=("Telephone 2",),
    fax=("Fax Number",),
    email=("E-Mail Address",),
    vatRegistrationNo=("VAT Registration No.",),
    vatOffice=("VAT Office",),
    salesGroup=("Description Sales Group",),
    groupKey=("Group key",),
    groupKeyText=("Group key 1 Text",),
    regionId=("Region ID",),
    region=("Region",),
    transportationZoneId=("Transportation Zone ID",),
    transportationZone=("Transportation Zone",),
    merch=("Merch",),
)

_BACK_OFFICE_CUSTOMER: dict[str, tuple[str, ...]] = {
    "customerCode": ("Κωδικός", "ΚΩΔΙΚΟΣ ΠΕΛΑΤΗ", "ΚΩΔ.", "Customer Code", "Code"),
    "name": ("Επωνυμία", "Name"),
    "street": ("Διεύθυνση", "Street"),
    "postalCode": ("Τ.Κ.", "Postal Code"),
    "city": ("Πόλη", "City"),
    "telephone1": ("Τηλ.1", "Τηλέφωνο 1", "Telephone 1"),
    "telephone2": ("Τηλ.2", "Τηλέφωνο 2", "Telephone 2"),
    "fax": ("Fax", "Fax Number"),
    "email": ("email", "E-Mail Address"),
    "vatRegistrationNo": ("Α.Φ.Μ.", "VAT Registration No."),
    "vatOffice": ("Δ.Ο.Υ.", "VAT Office"),
    "profession": ("Επάγγελμα", "Profession"),
    "merch": ("Πωλητής", "Merch"),
}

KIVOS_CUSTOMER = _table(
    **_BACK_OFFICE_CUSTOMER,
    balance=("Υπόλοιπο", "Balance"),
    InvSales2022=("Τζίρος 2022", "Sales 2022"),
    InvSales2023=("Τζίρος 2023", "Sales 2023"),
    InvSales2024=("Τζίρος 2024", "Sales 2024"),
    isActive=("Ενεργός", "Active"),
    channel=("Κανάλι", "Channel"),
)

JOHN_CUSTOMER = _table(**_BACK_OFFICE_CUSTOMER)


# ---------------------------------------------------------------------------
# John supermarket sheets (positional, resolved once against the header row)
# ---------------------------------------------------------------------------

SUPERMARKET_LISTING = _table(
    superMarket=("SuperMarket",),
    productCode=("Κωδ.", "Κωδικος", "Product Code"),
    productCategory=("Κατηγορία", "Category"),
    photoUrl=("Φωτογραφία", "Photo"),
    barcode=("Barcode",),
    description=("Περιγραφή", "Description"),
    packaging=("Συσκ.", "Packaging"),
    price=("Τιμή", "Price"),
    isNew=("Νέο", "New"),
    isAActive=("IsAActive",),
    isBActive=("IsBActive",),
    isCActive=("IsCActive",),
    isSummerActiveGrand=("isSummerActiveGrand",),
    isSummerActiveMegala=("isSummerActiveMegala",),
    isSummerActiveMegalaPlus=("isSummerActiveMegalaPlus",),
    isSummerActiveMesaia=("isSummerActiveMesaia",),
    isSummerActiveMikra=("isSummerActiveMikra",),
    brand=("Brand",),
    categoryHierarchyTree=("categoryHierarchyTree", "Category Hierarchy"),
)

SUPERMARKET_STORE = _table(
    storeCode=("ΚΩΔ.", "Store Code"),
    storeName=("Store Name", "Κατάστημα"),
    storeCategory=("Category", "Κατηγορία"),
    hasToys=("Toys", "ΠΑΙΧΝΙΔΙΑ", "Has Toys", "hasToys"),
    hasSummerItems=("Summer Items", "ΚΑΛΟΚΑΙΡΙΝΑ", "Has Summer Items", "hasSummerItems"),
)

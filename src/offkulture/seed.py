"""Seed data: the launch catalog and the starter payment method."""

from decimal import Decimal

from .models import Category, PaymentMethod, PaymentType, Product

_SIZES_TOPS = ["S", "M", "L", "XL", "XXL"]
_SIZES_WOMENS = ["XS", "S", "M", "L", "XL"]
_SIZES_BABY = ["0-3M", "3-6M", "6-12M", "12-18M"]
_ONE_SIZE = ["One Size"]

# (id, name, price, category, stock, sizes, colors, description)
_LAUNCH_CATALOG = [
    ("M001", "Heritage Cotton Casual Shirt", "449.99", Category.MENS, 25, _SIZES_TOPS,
     ["Khaki", "Navy", "White", "Charcoal"],
     "Premium cotton casual shirt inspired by Cape Town style. Perfect for braai days and weekend outings."),
    ("M002", "Executive Business Suit", "2899.99", Category.MENS, 15,
     ["36", "38", "40", "42", "44", "46"], ["Charcoal", "Navy", "Black"],
     "Tailored business suit for the modern South African professional. Made from premium wool blend."),
    ("M003", "Safari Cargo Pants", "599.99", Category.MENS, 18,
     ["30", "32", "34", "36", "38", "40"], ["Khaki", "Olive", "Sand"],
     "Durable cargo pants perfect for outdoor adventures and game drives."),
    ("M004", "Springbok Rugby Jersey", "899.99", Category.MENS, 35,
     ["S", "M", "L", "XL", "XXL", "XXXL"], ["Green & Gold", "White", "Black"],
     "Official replica Springbok rugby jersey. Show your South African pride."),
    ("M005", "Johannesburg Denim Jacket", "1199.99", Category.MENS, 22, _SIZES_TOPS,
     ["Classic Blue", "Black Wash", "Light Blue"],
     "Classic denim jacket with urban Johannesburg styling. Perfect for highveld evenings."),
    ("M006", "Traditional Biltong Apron", "349.99", Category.MENS, 16, _ONE_SIZE,
     ["Brown Leather", "Black Leather", "Tan"],
     "Authentic leather biltong-making apron. Essential for every braai master."),
    ("W001", "Elegant Summer Dress", "799.99", Category.WOMENS, 20, _SIZES_WOMENS,
     ["Coral", "Sky Blue", "White", "Lavender"],
     "Flowing summer dress perfect for Durban's coastal lifestyle."),
    ("W002", "Professional Blouse", "549.99", Category.WOMENS, 28, _SIZES_WOMENS,
     ["White", "Cream", "Light Blue", "Blush Pink"],
     "Sophisticated blouse ideal for Sandton business district meetings."),
    ("W003", "Cape Town Maxi Skirt", "699.99", Category.WOMENS, 24, _SIZES_WOMENS,
     ["Sunset Orange", "Ocean Blue", "Wine Red", "Forest Green"],
     "Flowing maxi skirt inspired by Cape Town's vibrant culture."),
    ("W004", "Protea Print Kimono", "899.99", Category.WOMENS, 18, _ONE_SIZE,
     ["Pink Protea", "Blue Protea", "Gold Protea"],
     "Kimono featuring South Africa's national flower, the Protea."),
    ("W005", "Heritage Denim Jeans", "849.99", Category.WOMENS, 31,
     ["24", "26", "28", "30", "32", "34"], ["Dark Wash", "Medium Wash", "Light Wash", "Black"],
     "High-quality denim jeans with South African heritage stitching."),
    ("W006", "Johannesburg Evening Gown", "2499.99", Category.WOMENS, 12, _SIZES_WOMENS,
     ["Midnight Black", "Deep Emerald", "Royal Blue", "Champagne"],
     "Elegant evening gown for Johannesburg's upscale social events."),
    ("B001", "African Print Baby Set", "299.99", Category.BABY, 32, _SIZES_BABY,
     ["Traditional Print", "Blue Print", "Pink Print"],
     "African-inspired baby clothing set. Celebrating our heritage with style."),
    ("B002", "Little Springbok Onesie", "199.99", Category.BABY, 28,
     ["0-3M", "3-6M", "6-12M", "12-18M", "18-24M"], ["Green & Gold", "White", "Navy"],
     "Springbok-themed onesie for the littlest rugby fan. Soft organic cotton."),
    ("B003", "Safari Animal Sleepsuit", "249.99", Category.BABY, 25, _SIZES_BABY,
     ["Khaki Safari", "Cream Safari", "Pink Safari"],
     "Cozy sleepsuit featuring South African safari animals."),
    ("B004", "Ubuntu Baby Bib Set", "149.99", Category.BABY, 40, _ONE_SIZE,
     ["Earth Tones", "Pastels", "Bright Colors"],
     "Set of 3 bibs with Ubuntu philosophy quotes."),
    ("B005", "Baobab Tree Romper", "329.99", Category.BABY, 22, _SIZES_BABY,
     ["Sunset Orange", "Desert Sand", "Olive Green"],
     "Romper featuring the iconic Baobab tree."),
    ("B006", "Cape Town Beanie Set", "179.99", Category.BABY, 35,
     ["0-6M", "6-12M", "12-18M"], ["Table Mountain Blue", "Penguin Black", "Fynbos Green"],
     "Warm beanie set for Cape Town's winter months, with matching mittens and booties."),
    ("A001", "Designer Handbag", "1299.99", Category.ACCESSORIES, 14, [],
     ["Black", "Brown", "Tan", "Navy"],
     "Luxury handbag crafted from premium materials."),
    ("A002", "Rooibos Tea Scarf", "399.99", Category.ACCESSORIES, 26, [],
     ["Rooibos Red", "Honeybush Gold", "Green Tea", "Vanilla Cream"],
     "Silk scarf in warm rooibos tea colors."),
    ("A003", "Kruger Park Watch", "1899.99", Category.ACCESSORIES, 18, [],
     ["Safari Bronze", "Wildlife Silver", "Bushveld Black"],
     "Limited edition watch inspired by Kruger National Park."),
    ("A004", "Ndebele Pattern Belt", "549.99", Category.ACCESSORIES, 20, ["S", "M", "L", "XL"],
     ["Traditional Colors", "Black & White", "Earth Tones"],
     "Hand-crafted leather belt featuring traditional Ndebele geometric patterns."),
    ("A005", "Stellenbosch Wine Tote", "699.99", Category.ACCESSORIES, 24, [],
     ["Wine Red", "Vineyard Green", "Natural Canvas", "Grape Purple"],
     "Canvas tote bag perfect for Stellenbosch wine tours."),
    ("A006", "Big Five Sunglasses", "899.99", Category.ACCESSORIES, 16, [],
     ["Leopard Print", "Rhino Grey", "Lion Gold", "Elephant Black"],
     "Premium sunglasses with Big Five animal engravings."),
]


def launch_catalog() -> list[Product]:
    """Fresh Product objects for the launch catalog."""
    products = []
    for pid, name, price, category, stock, sizes, colors, description in _LAUNCH_CATALOG:
        products.append(
            Product(
                id=pid,
                name=name,
                price=Decimal(price),
                category=category,
                stock_quantity=stock,
                description=description,
                sizes=list(sizes),
                colors=list(colors),
                sku=f"{pid}-OFK",
                tags=[category.value],
                brand="OffKulture",
            )
        )
    # The shirt launched on sale with reviews already in
    shirt = products[0]
    shirt.original_price = Decimal("549.99")
    shirt.is_sale = True
    shirt.rating = 4.6
    shirt.review_count = 28
    shirt.tags = ["casual", "cotton", "heritage", "mens"]
    return products


def starter_payment_methods() -> list[PaymentMethod]:
    """The card every new customer account starts with."""
    return [
        PaymentMethod.create(
            type=PaymentType.CREDIT_CARD,
            name="Visa ending in 1234",
            last_four="1234",
            expiry_date="12/25",
            is_default=True,
        )
    ]

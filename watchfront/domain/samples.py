"""Built-in listings used whenever real marketplace data is unavailable."""
from typing import Tuple
from .models import Attribute, Listing, Price


def _sample(item_id, title, amount, image_text, short, attrs, full=""):
    return Listing(
        id=item_id,
        title=title,
        price=Price(amount=amount, currency="USD"),
        image_url=f"https://placehold.co/600x400/gold/white?text={image_text}",
        external_url=f"https://www.ebay.com/itm/{item_id}",
        short_description=short,
        full_description=full,
        attributes=tuple(Attribute(name=n, value=v) for n, v in attrs),
    )


SAMPLE_LISTINGS: Tuple[Listing, ...] = (
    _sample(
        "123456789",
        "Vintage Omega Seamaster Automatic Watch - 1960s",
        "899.99",
        "Omega+Watch",
        "Beautiful Omega Seamaster from the 1960s in excellent condition. Automatic movement.",
        [("Brand", "Omega"), ("Model", "Seamaster"), ("Year", "1960s"), ("Movement", "Automatic"),
         ("Type", "automatic"), ("Listing Date", "2024-03-02")],
        full="Beautiful Omega Seamaster from the 1960s in excellent condition. Automatic movement, "
             "serviced last year, original crown and caseback. Keeps time within a few seconds a day.",
    ),
    _sample(
        "223456789",
        "Hamilton Khaki Field Hand-Wind Military Watch",
        "425.00",
        "Hamilton+Watch",
        "Hand-wound field watch with a 38mm stainless case and a black dial.",
        [("Brand", "Hamilton"), ("Model", "Khaki Field"), ("Year", "1970s"), ("Movement", "Manual"),
         ("Listing Date", "2024-02-14")],
    ),
    _sample(
        "323456789",
        "Seiko 5 Self-Winding Day-Date Watch",
        "149.50",
        "Seiko+Watch",
        "Classic Seiko 5 with day-date complication and an exhibition caseback.",
        [("Brand", "Seiko"), ("Model", "SNK809"), ("Year", "2015"), ("Movement", "Automatic"),
         ("Listing Date", "2024-03-20")],
    ),
    _sample(
        "423456789",
        "Casio G-Shock DW-5600 Digital Watch",
        "79.99",
        "Casio+Watch",
        "The square G-Shock in black resin, backlight and alarm working.",
        [("Brand", "Casio"), ("Model", "DW-5600"), ("Year", "2019"), ("Movement", "Quartz")],
    ),
    _sample(
        "523456789",
        "Pulsar LED Red Display Watch - 1970s",
        "310.00",
        "Pulsar+Watch",
        "Early LED watch with the red time-on-demand display.",
        [("Brand", "Pulsar"), ("Year", "1970s"), ("Listing Date", "2024-01-05")],
    ),
    _sample(
        "623456789",
        "Citizen Eco-Drive Chronograph",
        "189.00",
        "Citizen+Watch",
        "Light powered chronograph, sapphire crystal, 100m water resistance.",
        [("Brand", "Citizen"), ("Model", "Eco-Drive"), ("Year", "2021"), ("Movement", "Quartz"),
         ("Listing Date", "2024-03-11")],
    ),
    _sample(
        "723456789",
        "Timex Marlin Reissue Watch",
        "199.00",
        "Timex+Watch",
        "Reissue of the 1960s Marlin dress watch with a hand-wound movement.",
        [("Brand", "Timex"), ("Model", "Marlin"), ("Year", "2022"), ("Type", "manual")],
    ),
    _sample(
        "823456789",
        "Bulova Accutron Spaceview Watch",
        "650.00",
        "Bulova+Watch",
        "Tuning fork Accutron with the open Spaceview dial.",
        [("Brand", "Bulova"), ("Model", "Accutron Spaceview"), ("Year", "1968"),
         ("Listing Date", "2023-12-30")],
    ),
)

"""
Season seed data for the F1 Pick'em application

The 2026 driver line-up and race calendar, loaded with `manage.py calendar seed`.
Session times are in Brasilia time (-03:00).
"""

import logging

from app import db
from app.utils.scoring import sessions_for

logger = logging.getLogger(__name__)

TEAM_COLORS = {
    "McLaren": "#FF8700",
    "Mercedes": "#27F4D2",
    "Red Bull": "#3671C6",
    "Ferrari": "#E80020",
    "Racing Bulls": "#6692FF",
    "Aston Martin": "#229971",
    "Haas": "#B6BABD",
    "Audi": "#A2A2A2",
    "Alpine": "#0093CC",
    "Cadillac": "#FFCC00",
    "Williams": "#00A0DE",
}

FALLBACK_IMAGE = "https://media.formula1.com/content/dam/fom-website/drivers/d_driver_fallback_image.png"

_F1_MEDIA = "https://media.formula1.com/content/dam/fom-website/drivers"
_COMMONS = "https://upload.wikimedia.org/wikipedia/commons/thumb"

# (id, name, number, team, country, image)
DRIVERS = [
    ("norris", "Lando Norris", 4, "McLaren", "GBR", f"{_F1_MEDIA}/L/LANNOR01_Lando_Norris/lannor01.png"),
    ("piastri", "Oscar Piastri", 81, "McLaren", "AUS", f"{_F1_MEDIA}/O/OSCPIA01_Oscar_Piastri/oscpia01.png"),
    ("russell", "George Russell", 63, "Mercedes", "GBR", f"{_F1_MEDIA}/G/GEORUS01_George_Russell/georus01.png"),
    ("antonelli", "Kimi Antonelli", 12, "Mercedes", "ITA", f"{_COMMONS}/e/e6/Andrea_Kimi_Antonelli_Imola_2022.jpg/640px-Andrea_Kimi_Antonelli_Imola_2022.jpg"),
    ("verstappen", "Max Verstappen", 1, "Red Bull", "NED", f"{_F1_MEDIA}/M/MAXVER01_Max_Verstappen/maxver01.png"),
    ("hadjar", "Isack Hadjar", 6, "Red Bull", "FRA", f"{_COMMONS}/5/58/Isack_Hadjar_Red_Bull_Ring_2022.jpg/640px-Isack_Hadjar_Red_Bull_Ring_2022.jpg"),
    ("leclerc", "Charles Leclerc", 16, "Ferrari", "MON", f"{_F1_MEDIA}/C/CHALEC01_Charles_Leclerc/chalec01.png"),
    ("hamilton", "Lewis Hamilton", 44, "Ferrari", "GBR", f"{_F1_MEDIA}/L/LEWHAM01_Lewis_Hamilton/lewham01.png"),
    ("lawson", "Liam Lawson", 30, "Racing Bulls", "NZL", f"{_F1_MEDIA}/L/LIALAW01_Liam_Lawson/lialaw01.png"),
    ("lindblad", "Arvid Lindblad", 41, "Racing Bulls", "GBR", f"{_COMMONS}/c/c2/Arvid_Lindblad_2022.jpg/640px-Arvid_Lindblad_2022.jpg"),
    ("alonso", "Fernando Alonso", 14, "Aston Martin", "ESP", f"{_F1_MEDIA}/F/FERALO01_Fernando_Alonso/feralo01.png"),
    ("stroll", "Lance Stroll", 18, "Aston Martin", "CAN", f"{_F1_MEDIA}/L/LANSTR01_Lance_Stroll/lanstr01.png"),
    ("ocon", "Esteban Ocon", 31, "Haas", "FRA", f"{_F1_MEDIA}/E/ESTOCO01_Esteban_Ocon/estoco01.png"),
    ("bearman", "Oliver Bearman", 87, "Haas", "GBR", f"{_F1_MEDIA}/O/OLIBEA01_Oliver_Bearman/olibea01.png"),
    ("hulkenberg", "Nico Hülkenberg", 27, "Audi", "GER", f"{_F1_MEDIA}/N/NICHUL01_Nico_Hulkenberg/nichul01.png"),
    ("bortoleto", "Gabriel Bortoleto", 5, "Audi", "BRA", f"{_COMMONS}/9/9c/Gabriel_Bortoleto_F3_2023.jpg/640px-Gabriel_Bortoleto_F3_2023.jpg"),
    ("gasly", "Pierre Gasly", 10, "Alpine", "FRA", f"{_F1_MEDIA}/P/PIEGAS01_Pierre_Gasly/piegas01.png"),
    ("colapinto", "Franco Colapinto", 43, "Alpine", "ARG", f"{_F1_MEDIA}/F/FRACOL01_Franco_Colapinto/fracol01.png"),
    ("perez", "Sergio Pérez", 11, "Cadillac", "MEX", f"{_F1_MEDIA}/S/SERPER01_Sergio_Perez/serper01.png"),
    ("bottas", "Valtteri Bottas", 77, "Cadillac", "FIN", f"{_F1_MEDIA}/V/VALBOT01_Valtteri_Bottas/valbot01.png"),
    ("albon", "Alex Albon", 23, "Williams", "THA", f"{_F1_MEDIA}/A/ALEALB01_Alexander_Albon/alealb01.png"),
    ("sainz", "Carlos Sainz", 55, "Williams", "ESP", f"{_F1_MEDIA}/C/CARSAI01_Carlos_Sainz/carsai01.png"),
]


def _t(month, day, hour, minute):
    """ISO timestamp in Brasilia time for the 2026 season"""
    return f"2026-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:00-03:00"


def _weekend(fp1, fp2, fp3, qualifying, race):
    return {
        "TL1": _t(*fp1),
        "TL2": _t(*fp2),
        "TL3": _t(*fp3),
        "Qualificação": _t(*qualifying),
        "Corrida": _t(*race),
    }


def _sprint_weekend(fp1, sprint_qualifying, sprint, qualifying, race):
    return {
        "TL1": _t(*fp1),
        "Qualy Sprint": _t(*sprint_qualifying),
        "Sprint": _t(*sprint),
        "Qualificação": _t(*qualifying),
        "Corrida": _t(*race),
    }


# (id, name, location, date label, is_sprint, session times)
CALENDAR = [
    (1, "Austrália", "Melbourne", "05-08 Mar", False,
     _weekend((3, 5, 22, 30), (3, 6, 2, 0), (3, 6, 22, 30), (3, 7, 2, 0), (3, 8, 1, 0))),
    (2, "China", "Xangai", "13-15 Mar", True,
     _sprint_weekend((3, 13, 0, 30), (3, 13, 4, 30), (3, 14, 0, 0), (3, 14, 4, 0), (3, 15, 4, 0))),
    (3, "Japão", "Suzuka", "26-29 Mar", False,
     _weekend((3, 26, 23, 30), (3, 27, 3, 0), (3, 27, 23, 30), (3, 28, 3, 0), (3, 29, 2, 0))),
    (4, "Bahrein", "Sakhir", "10-12 Abr", False,
     _weekend((4, 10, 8, 30), (4, 10, 12, 0), (4, 11, 9, 30), (4, 11, 13, 0), (4, 12, 12, 0))),
    (5, "Arábia Saudita", "Jeddah", "17-19 Abr", False,
     _weekend((4, 17, 10, 30), (4, 17, 14, 0), (4, 18, 10, 30), (4, 18, 14, 0), (4, 19, 14, 0))),
    (6, "Miami", "USA", "01-03 Mai", True,
     _sprint_weekend((5, 1, 13, 30), (5, 1, 17, 30), (5, 2, 13, 0), (5, 2, 17, 0), (5, 3, 17, 0))),
    (7, "Canadá", "Montreal", "22-24 Mai", True,
     _sprint_weekend((5, 22, 13, 30), (5, 22, 17, 30), (5, 23, 13, 0), (5, 23, 17, 0), (5, 24, 17, 0))),
    (8, "Mônaco", "Monte Carlo", "05-07 Jun", False,
     _weekend((6, 5, 8, 30), (6, 5, 12, 0), (6, 6, 7, 30), (6, 6, 11, 0), (6, 7, 10, 0))),
    (9, "Espanha", "Barcelona", "12-14 Jun", False,
     _weekend((6, 12, 8, 30), (6, 12, 12, 0), (6, 13, 7, 30), (6, 13, 11, 0), (6, 14, 10, 0))),
    (10, "Áustria", "Spielberg", "26-28 Jun", False,
     _weekend((6, 26, 8, 30), (6, 26, 12, 0), (6, 27, 7, 30), (6, 27, 11, 0), (6, 28, 10, 0))),
    (11, "Grã-Bretanha", "Silverstone", "03-05 Jul", True,
     _sprint_weekend((7, 3, 8, 30), (7, 3, 12, 30), (7, 4, 8, 0), (7, 4, 12, 0), (7, 5, 11, 0))),
    (12, "Bélgica", "Spa", "17-19 Jul", False,
     _weekend((7, 17, 8, 30), (7, 17, 12, 0), (7, 18, 7, 30), (7, 18, 11, 0), (7, 19, 10, 0))),
    (13, "Hungria", "Budapest", "24-26 Jul", False,
     _weekend((7, 24, 8, 30), (7, 24, 12, 0), (7, 25, 7, 30), (7, 25, 11, 0), (7, 26, 10, 0))),
    (14, "Holanda", "Zandvoort", "21-23 Ago", True,
     _sprint_weekend((8, 21, 7, 30), (8, 21, 11, 30), (8, 22, 7, 0), (8, 22, 11, 0), (8, 23, 10, 0))),
    (15, "Itália", "Monza", "04-06 Set", False,
     _weekend((9, 4, 7, 30), (9, 4, 11, 0), (9, 5, 7, 30), (9, 5, 11, 0), (9, 6, 10, 0))),
    (16, "Madri", "Espanha", "11-13 Set", False,
     _weekend((9, 11, 8, 30), (9, 11, 12, 0), (9, 12, 7, 30), (9, 12, 11, 0), (9, 13, 10, 0))),
    (17, "Azerbaijão", "Baku", "24-26 Set", False,
     _weekend((9, 24, 5, 30), (9, 24, 9, 0), (9, 25, 5, 30), (9, 25, 9, 0), (9, 26, 8, 0))),
    (18, "Singapura", "Marina Bay", "09-11 Out", True,
     _sprint_weekend((10, 9, 6, 30), (10, 9, 9, 30), (10, 10, 6, 0), (10, 10, 10, 0), (10, 11, 9, 0))),
    (19, "EUA", "Austin", "23-25 Out", False,
     _weekend((10, 23, 14, 30), (10, 23, 18, 0), (10, 24, 14, 30), (10, 24, 18, 0), (10, 25, 17, 0))),
    (20, "México", "Mexico City", "30 Out-01 Nov", False,
     _weekend((10, 30, 15, 30), (10, 30, 19, 0), (10, 31, 14, 30), (10, 31, 18, 0), (11, 1, 17, 0))),
    (21, "São Paulo", "Interlagos", "06-08 Nov", False,
     _weekend((11, 6, 12, 30), (11, 6, 16, 0), (11, 7, 11, 30), (11, 7, 15, 0), (11, 8, 14, 0))),
    (22, "Las Vegas", "Nevada", "19-22 Nov", False,
     _weekend((11, 19, 21, 30), (11, 20, 1, 0), (11, 20, 21, 30), (11, 21, 1, 0), (11, 22, 1, 0))),
    (23, "Catar", "Lusail", "27-29 Nov", False,
     _weekend((11, 27, 10, 30), (11, 27, 14, 0), (11, 28, 11, 30), (11, 28, 15, 0), (11, 29, 13, 0))),
    (24, "Abu Dhabi", "Yas Marina", "04-06 Dez", False,
     _weekend((12, 4, 6, 30), (12, 4, 10, 0), (12, 5, 7, 30), (12, 5, 11, 0), (12, 6, 10, 0))),
]


def seed_drivers():
    """Insert missing drivers and refresh existing ones; returns (created, updated)"""
    from app.models import Driver

    created = updated = 0
    for driver_id, name, number, team, country, image in DRIVERS:
        driver = db.session.get(Driver, driver_id)
        if driver is None:
            driver = Driver(id=driver_id)
            db.session.add(driver)
            created += 1
        else:
            updated += 1

        driver.name = name
        driver.number = number
        driver.team = team
        driver.country = country
        driver.color = TEAM_COLORS.get(team)
        driver.image_url = image or FALLBACK_IMAGE

    return created, updated


def seed_calendar():
    """
    Insert missing calendar events; returns (created, skipped).

    Existing events are left untouched so results and session flags survive
    a re-seed. The first event starts open.
    """
    from app.models import Event

    created = skipped = 0
    for event_id, name, location, date_label, is_sprint, session_times in CALENDAR:
        if db.session.get(Event, event_id) is not None:
            skipped += 1
            continue

        event = Event(
            id=event_id,
            name=name,
            location=location,
            date_label=date_label,
            is_sprint=is_sprint,
            status=Event.STATUS_OPEN if event_id == 1 else Event.STATUS_UPCOMING,
            session_status={session: True for session in sessions_for(is_sprint)},
            session_times=session_times,
        )
        db.session.add(event)
        created += 1

    logger.info(f"Calendar seed: {created} events created, {skipped} already present")
    return created, skipped

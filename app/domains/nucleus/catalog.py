# app/domains/nucleus/catalog.py
"""
Static content for the nucleus: question templates per interest category,
the photo and voice prompts and the mini-game content.
"""
from typing import Dict, Iterable, List, Optional

from .entities import CategoryInfo, Question, QuestionType

T = QuestionType

GENERAL = "general"

CATEGORIES: Dict[str, CategoryInfo] = {
    info.key: info for info in [
        CategoryInfo("musica", "Música", "🎵"),
        CategoryInfo("deportes", "Deporte", "🏃"),
        CategoryInfo("cine", "Cine y series", "🎬"),
        CategoryInfo("viajes", "Viajes", "✈️"),
        CategoryInfo("cocina", "Cocina", "🍳"),
        CategoryInfo("naturaleza", "Naturaleza", "🌿"),
        CategoryInfo("fotografia", "Fotografía", "📷"),
        CategoryInfo("libros", "Libros", "📚"),
        CategoryInfo("tecnologia", "Tecnología", "💻"),
        CategoryInfo("arte", "Arte", "🎨"),
        CategoryInfo(GENERAL, "General", "💫"),
    ]
}

# profile interest -> question category
INTEREST_CATEGORY: Dict[str, str] = {}
for _category, _interests in {
    "musica": ["musica", "rock", "jazz", "electronica", "reggaeton", "clasica", "pop"],
    "deportes": ["deportes", "futbol", "gym", "running", "natacion", "ciclismo", "yoga", "tenis", "basketball"],
    "cine": ["cine", "series", "anime", "teatro", "stand_up"],
    "viajes": ["viajes", "playa", "montaña", "idiomas"],
    "cocina": ["cocina", "gastronomia", "nutricion"],
    "naturaleza": ["naturaleza", "meditacion", "mindfulness", "voluntariado"],
    "fotografia": ["fotografia", "fotografia_art"],
    "libros": ["libros", "ciencia", "filosofia", "escritura", "historia", "psicologia", "autodesarrollo"],
    "tecnologia": ["tecnologia", "programacion", "ia", "gadgets", "gaming", "podcasts"],
    "arte": ["arte", "diseno", "danza", "manualidades", "moda"],
}.items():
    for _interest in _interests:
        INTEREST_CATEGORY[_interest] = _category


def _q(category: str, n: int, qtype: QuestionType, text: str, options: Optional[List[str]] = None) -> Question:
    return Question(id=f"{category}-{n}", category=category, type=qtype, text=text, options=options or [])


QUESTIONS: List[Question] = [
    _q("musica", 1, T.TEXT, "¿Qué canción te recuerda a tu infancia?"),
    _q("musica", 2, T.THIS_OR_THAT, "¿Concierto o festival?", ["Concierto", "Festival"]),
    _q("musica", 3, T.MULTIPLE, "¿Qué géneros no pueden faltar en tu playlist?",
       ["Rock", "Pop", "Jazz", "Electrónica", "Reggaetón", "Clásica"]),
    _q("musica", 4, T.CHOICE, "¿Cómo escuchas música la mayor parte del tiempo?",
       ["Con auriculares", "En el coche", "En casa con altavoz", "En directo"]),

    _q("deportes", 1, T.CHOICE, "¿Cuándo prefieres entrenar?", ["Mañana", "Mediodía", "Tarde", "Noche"]),
    _q("deportes", 2, T.THIS_OR_THAT, "¿Jugar o mirar?", ["Jugar", "Mirar"]),
    _q("deportes", 3, T.TEXT, "¿Qué deporte te gustaría probar conmigo?"),

    _q("cine", 1, T.TEXT, "¿Qué película podrías ver mil veces?"),
    _q("cine", 2, T.THIS_OR_THAT, "¿Cine o sofá?", ["Cine", "Sofá"]),
    _q("cine", 3, T.RANKING, "Ordena estos géneros de favorito a menos favorito",
       ["Comedia", "Drama", "Terror", "Ciencia ficción"]),

    _q("viajes", 1, T.TEXT, "¿Cuál es el mejor viaje que has hecho?"),
    _q("viajes", 2, T.THIS_OR_THAT, "¿Playa o montaña?", ["Playa", "Montaña"]),
    _q("viajes", 3, T.CHOICE, "¿Cómo te gusta viajar?", ["Todo planificado", "Improvisando", "Un poco de ambos"]),

    _q("cocina", 1, T.TEXT, "¿Cuál es tu plato estrella?"),
    _q("cocina", 2, T.THIS_OR_THAT, "¿Dulce o salado?", ["Dulce", "Salado"]),
    _q("cocina", 3, T.MULTIPLE, "¿Qué cocinas te gustan?", ["Italiana", "Japonesa", "Mexicana", "India", "Mediterránea"]),

    _q("naturaleza", 1, T.THIS_OR_THAT, "¿Amanecer o atardecer?", ["Amanecer", "Atardecer"]),
    _q("naturaleza", 2, T.TEXT, "¿Cuál es tu rincón natural favorito?"),
    _q("naturaleza", 3, T.CHOICE, "¿Plan de fin de semana ideal?", ["Senderismo", "Acampada", "Picnic", "Paseo por la costa"]),

    _q("fotografia", 1, T.THIS_OR_THAT, "¿Móvil o cámara?", ["Móvil", "Cámara"]),
    _q("fotografia", 2, T.TEXT, "¿Qué foto tuya te gustaría que viera?"),
    _q("fotografia", 3, T.CHOICE, "¿Qué te gusta fotografiar?", ["Personas", "Paisajes", "Comida", "Ciudad"]),

    _q("libros", 1, T.TEXT, "¿Qué libro te cambió la forma de pensar?"),
    _q("libros", 2, T.THIS_OR_THAT, "¿Papel o digital?", ["Papel", "Digital"]),
    _q("libros", 3, T.RANKING, "Ordena estos géneros literarios",
       ["Novela", "Ensayo", "Poesía", "Fantasía"]),

    _q("tecnologia", 1, T.THIS_OR_THAT, "¿Android o iPhone?", ["Android", "iPhone"]),
    _q("tecnologia", 2, T.TEXT, "¿Qué invento te gustaría que existiera?"),
    _q("tecnologia", 3, T.MULTIPLE, "¿En qué usas más tu tiempo en pantalla?",
       ["Redes sociales", "Videojuegos", "Series", "Trabajo", "Aprender"]),

    _q("arte", 1, T.TEXT, "¿Qué obra de arte te emociona?"),
    _q("arte", 2, T.THIS_OR_THAT, "¿Museo o arte urbano?", ["Museo", "Arte urbano"]),
    _q("arte", 3, T.CHOICE, "¿Qué disciplina te gustaría aprender?", ["Pintura", "Cerámica", "Danza", "Escultura"]),

    _q(GENERAL, 1, T.TEXT, "¿Qué es lo que más valoras en una persona?"),
    _q(GENERAL, 2, T.THIS_OR_THAT, "¿Madrugar o trasnochar?", ["Madrugar", "Trasnochar"]),
    _q(GENERAL, 3, T.CHOICE, "¿Cuál es tu lenguaje del amor?",
       ["Palabras", "Tiempo de calidad", "Regalos", "Actos de servicio", "Contacto físico"]),
    _q(GENERAL, 4, T.RANKING, "Ordena lo que más te importa en una relación",
       ["Confianza", "Humor", "Pasión", "Comunicación"]),
    _q(GENERAL, 5, T.TEXT, "¿Cómo sería tu primera cita perfecta?"),
    _q(GENERAL, 6, T.MULTIPLE, "¿Qué planes te apetecen más?",
       ["Cena", "Concierto", "Paseo", "Museo", "Deporte", "Juegos de mesa"]),
]

QUESTIONS_BY_ID: Dict[str, Question] = {q.id: q for q in QUESTIONS}


def questions_for(category: str) -> List[Question]:
    return [q for q in QUESTIONS if q.category == category]


def interest_categories(interests: Iterable[str]) -> List[str]:
    """Question categories covered by a profile's interests, in profile order"""
    seen = []
    for interest in interests or []:
        category = INTEREST_CATEGORY.get(str(interest).strip().lower())
        if category and category not in seen:
            seen.append(category)
    return seen


def shared_categories(interests_a: Iterable[str], interests_b: Iterable[str]) -> List[str]:
    """Categories both users cover, plus the general category last"""
    theirs = set(interest_categories(interests_b))
    shared = [c for c in interest_categories(interests_a) if c in theirs]
    return shared + [GENERAL]


PHOTO_PROMPT = {"key": "photo-1", "prompt": "Comparte una foto de un lugar que te haga feliz"}
VOICE_PROMPT = {"key": "voice-1", "prompt": "Grábale un audio contando cómo es tu día perfecto"}

# Mini-game content

GUESS_ANSWER_QUESTIONS = [
    {"questionId": "ga-1", "text": "¿Cuál es mi plan ideal de domingo?",
     "options": ["Dormir hasta tarde", "Hacer deporte", "Salir con amigos", "Maratón de series"]},
    {"questionId": "ga-2", "text": "¿Qué haría con un billete de avión gratis?",
     "options": ["Playa paradisíaca", "Ciudad europea", "Aventura en la selva", "Visitar a mi familia"]},
    {"questionId": "ga-3", "text": "¿Qué me saca de quicio?",
     "options": ["La impuntualidad", "El ruido", "Las mentiras", "Tener hambre"]},
]

PHRASES = [
    {"phrase": "Creo que tu superpoder secreto es...",
     "options": ["la paciencia", "hacer reír", "cocinar", "escuchar"]},
    {"phrase": "Apuesto a que un domingo perfecto para ti es...",
     "options": ["dormir hasta tarde", "una excursión", "un brunch", "no salir de casa"]},
    {"phrase": "Seguro que lo primero que haces al despertar es...",
     "options": ["mirar el móvil", "un café", "hacer deporte", "volver a dormir"]},
]

TRUTH_OR_LIE_STATEMENTS = 3
DEFAULT_LIE_INDEX = 2

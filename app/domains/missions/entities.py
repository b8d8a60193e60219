from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class RoundStatus(str, Enum):
    VOTING = "VOTING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    SKIPPED = "SKIPPED"


OPEN_STATUSES = (RoundStatus.VOTING, RoundStatus.ACTIVE)


class MissionType(str, Enum):
    QUESTION = "QUESTION"
    CHOICE = "CHOICE"
    THIS_OR_THAT = "THIS_OR_THAT"
    WOULD_YOU_RATHER = "WOULD_YOU_RATHER"
    RANKING = "RANKING"


@dataclass(frozen=True)
class MissionTemplate:
    id: str
    type: MissionType
    category: str
    title: str
    description: str
    points: int
    difficulty: int = 1
    content: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "points": self.points,
            "difficulty": self.difficulty,
            "content": self.content,
        }


def _m(id, type, category, title, description, points, difficulty=1, **content) -> MissionTemplate:
    return MissionTemplate(id, type, category, title, description, points, difficulty, content)


M = MissionType

MISSIONS: List[MissionTemplate] = [
    _m("m-musica-playlist", M.QUESTION, "musica", "Playlist compartida",
       "Elige tres canciones que describan tu semana", 15, prompt="¿Qué tres canciones pondrías?"),
    _m("m-musica-concierto", M.CHOICE, "musica", "Concierto soñado",
       "¿A qué concierto iríais juntos?", 10, options=["Rock", "Jazz", "Electrónica", "Clásica"]),
    _m("m-viajes-destino", M.THIS_OR_THAT, "viajes", "Próximo destino",
       "Elegid entre dos escapadas", 10, choices=[{"a": "Playa", "b": "Montaña"}, {"a": "Ciudad", "b": "Pueblo"}]),
    _m("m-viajes-maleta", M.RANKING, "viajes", "La maleta perfecta",
       "Ordena lo imprescindible para un viaje", 20, 2, options=["Cámara", "Libro", "Auriculares", "Bañador"]),
    _m("m-cocina-receta", M.QUESTION, "cocina", "Receta secreta",
       "Comparte una receta que te salga de maravilla", 15, prompt="¿Cuál es tu receta?"),
    _m("m-cocina-cena", M.WOULD_YOU_RATHER, "cocina", "Cena ideal",
       "¿Qué preferirías?", 10, scenarios=[{"a": "Cocinar juntos", "b": "Ir a un restaurante"}]),
    _m("m-cine-maraton", M.RANKING, "cine", "Maratón de cine",
       "Ordena los géneros para una noche de cine", 15, options=["Comedia", "Terror", "Romance", "Acción"]),
    _m("m-deportes-reto", M.CHOICE, "deportes", "Reto deportivo",
       "Elige un reto para hacer esta semana", 20, 2, options=["10.000 pasos", "Clase de yoga", "Partido", "Ruta en bici"]),
    _m("m-naturaleza-paseo", M.QUESTION, "naturaleza", "Paseo consciente",
       "Sal a pasear y cuenta qué viste", 20, 2, prompt="¿Qué te llamó la atención?"),
    _m("m-arte-dibujo", M.QUESTION, "arte", "Retrato exprés",
       "Describe cómo te imaginas a la otra persona en un cuadro", 15, prompt="¿Cómo sería el cuadro?"),
    _m("m-libros-cita", M.QUESTION, "libros", "Cita favorita",
       "Comparte una frase de un libro que te marcó", 10, prompt="¿Qué frase elegirías?"),
    _m("m-tecnologia-app", M.THIS_OR_THAT, "tecnologia", "Vida digital",
       "Elegid vuestra versión digital", 10, choices=[{"a": "Mensajes de voz", "b": "Texto"}]),
    _m("m-general-suenos", M.QUESTION, "general", "Sueños",
       "Cuenta un sueño que quieras cumplir este año", 15, prompt="¿Qué sueño quieres cumplir?"),
    _m("m-general-plan", M.WOULD_YOU_RATHER, "general", "Plan de domingo",
       "¿Qué preferirías un domingo?", 10, scenarios=[{"a": "Brunch largo", "b": "Excursión temprana"}]),
    _m("m-general-gratitud", M.QUESTION, "general", "Gratitud",
       "Di tres cosas por las que hoy das las gracias", 10, prompt="¿Por qué das las gracias hoy?"),
]

MISSIONS_BY_ID: Dict[str, MissionTemplate] = {m.id: m for m in MISSIONS}

OPTIONS_PER_ROUND = 3

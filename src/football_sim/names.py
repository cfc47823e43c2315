from __future__ import annotations

import random

FIRST_NAMES = [
    "Lucas", "Mateus", "Gabriel", "Rafael", "Bruno", "Thiago", "Felipe", "Rodrigo", "Diego", "Vinicius",
    "Pedro", "Joao", "Caio", "Gustavo", "Leandro", "Marcelo", "Renato", "Eduardo", "Andre", "Fabio",
    "Santiago", "Matias", "Nicolas", "Facundo", "Agustin", "Joaquin", "Franco", "Emiliano", "Federico", "Ignacio",
    "Sebastian", "Camilo", "Andres", "Juan", "Luis", "Carlos", "Miguel", "Sergio", "Alvaro", "Pablo",
    "Marco", "Luca", "Alessandro", "Federico", "Lorenzo", "Davide", "Matteo", "Stefano", "Simone", "Andrea",
    "Jamie", "Harry", "Jack", "Callum", "Declan", "Mason", "Reece", "Kieran", "Ollie", "Ben",
    "Lukas", "Jonas", "Leon", "Niklas", "Florian", "Timo", "Kai", "Julian", "Maximilian", "Felix",
    "Antoine", "Hugo", "Theo", "Kylian", "Adrien", "Lucas", "Mathis", "Florent", "Olivier", "Benjamin",
    "Rui", "Nuno", "Tiago", "Goncalo", "Diogo", "Ricardo", "Bernardo", "Joao", "Ruben", "Vitor",
]

LAST_NAMES = [
    "Silva", "Santos", "Oliveira", "Souza", "Pereira", "Costa", "Rodrigues", "Almeida", "Nascimento", "Lima",
    "Araujo", "Fernandes", "Carvalho", "Gomes", "Martins", "Rocha", "Ribeiro", "Barbosa", "Cardoso", "Teixeira",
    "Gonzalez", "Fernandez", "Lopez", "Martinez", "Sanchez", "Perez", "Romero", "Diaz", "Alvarez", "Torres",
    "Ruiz", "Ramirez", "Flores", "Acosta", "Benitez", "Medina", "Herrera", "Suarez", "Aguirre", "Gimenez",
    "Rossi", "Russo", "Ferrari", "Esposito", "Bianchi", "Romano", "Colombo", "Ricci", "Marino", "Greco",
    "Smith", "Jones", "Taylor", "Brown", "Wilson", "Evans", "Walker", "Wright", "Robinson", "Thompson",
    "Muller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer", "Wagner", "Becker", "Hoffmann", "Koch",
    "Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit", "Durand", "Leroy", "Moreau",
    "Ferreira", "Goncalves", "Sousa", "Pinto", "Mendes", "Moreira", "Jesus", "Neves", "Correia", "Cunha",
]

CITY_NAMES: dict[str, list[str]] = {
    "BRA": [
        "Sao Paulo", "Rio", "Belo Horizonte", "Porto Alegre", "Curitiba", "Salvador", "Recife", "Fortaleza",
        "Goiania", "Belem", "Manaus", "Campinas", "Santos", "Florianopolis", "Natal", "Cuiaba",
        "Maceio", "Joinville", "Londrina", "Ribeirao", "Sorocaba", "Juiz de Fora", "Vitoria", "Caxias",
        "Chapeco", "Criciuma", "Braganca", "Campina Grande", "Teresina", "Aracaju", "Pelotas", "Uberlandia",
        "Maringa", "Volta Redonda", "Botucatu", "Novo Hamburgo", "Ituano", "Mirassol", "Guarani", "Paysandu",
    ],
    "ARG": [
        "Buenos Aires", "Rosario", "Cordoba", "La Plata", "Mendoza", "Tucuman", "Santa Fe", "Mar del Plata",
        "Avellaneda", "Lanus", "Banfield", "Quilmes", "San Juan", "Salta", "Parana", "Junin",
    ],
    "URU": [
        "Montevideo", "Salto", "Paysandu", "Rivera", "Maldonado", "Tacuarembo", "Melo", "Colonia",
        "Florida", "Durazno", "Rocha", "Minas",
    ],
    "CHI": [
        "Santiago", "Valparaiso", "Concepcion", "Antofagasta", "Temuco", "Rancagua", "Talca", "Iquique",
        "La Serena", "Calama", "Osorno", "Coquimbo",
    ],
    "COL": [
        "Bogota", "Medellin", "Cali", "Barranquilla", "Cartagena", "Bucaramanga", "Pereira", "Manizales",
        "Ibague", "Cucuta", "Pasto", "Tunja",
    ],
    "ENG": [
        "London", "Manchester", "Liverpool", "Birmingham", "Leeds", "Newcastle", "Bristol", "Sheffield",
        "Nottingham", "Leicester", "Southampton", "Brighton", "Norwich", "Derby",
    ],
    "ESP": [
        "Madrid", "Barcelona", "Valencia", "Sevilla", "Bilbao", "Malaga", "Zaragoza", "Vigo",
        "Gijon", "Pamplona", "Valladolid", "Granada", "Cadiz", "Getafe",
    ],
    "ITA": [
        "Milano", "Torino", "Roma", "Napoli", "Firenze", "Genova", "Bologna", "Verona",
        "Bergamo", "Udine", "Cagliari", "Lecce", "Parma", "Empoli",
    ],
    "GER": [
        "Munchen", "Dortmund", "Berlin", "Hamburg", "Koln", "Frankfurt", "Stuttgart", "Bremen",
        "Leipzig", "Freiburg", "Mainz", "Hannover", "Bochum", "Augsburg",
    ],
    "FRA": [
        "Paris", "Marseille", "Lyon", "Lille", "Nice", "Rennes", "Nantes", "Bordeaux",
        "Toulouse", "Montpellier", "Strasbourg", "Reims", "Lens", "Brest",
    ],
    "POR": [
        "Lisboa", "Porto", "Braga", "Guimaraes", "Coimbra", "Faro", "Setubal", "Aveiro",
        "Funchal", "Leiria", "Viseu", "Chaves", "Barcelos", "Famalicao",
    ],
}

CLUB_PREFIXES: dict[str, list[str]] = {
    "BRA": ["EC", "SC", "AC", "CR", "Atletico", "America"],
    "ARG": ["Club", "Atletico", "Deportivo", "Racing", "Sportivo"],
    "URU": ["Club", "Atletico", "Deportivo", "Liverpool", "Wanderers"],
    "CHI": ["Club", "Deportes", "Union", "Everton", "Audax"],
    "COL": ["Atletico", "Deportivo", "Independiente", "Once", "Real"],
    "ESP": ["Real", "Atletico", "CD", "UD", "SD"],
    "ITA": ["AC", "US", "SS", "Calcio", "Sporting"],
    "GER": ["FC", "VfB", "SV", "TSG", "Borussia"],
    "FRA": ["Olympique", "Stade", "AS", "FC", "RC"],
    "POR": ["Sporting", "FC", "Vitoria", "SC", "CD"],
}

ENGLISH_SUFFIXES = ["United", "City", "Town", "Rovers", "Athletic", "Wanderers", "Albion", "County"]


class NameGenerator:
    def __init__(self, seed: int | str | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()
        self._pool = [f"{first} {last}" for first in FIRST_NAMES for last in LAST_NAMES]
        self._rng.shuffle(self._pool)
        self._idx = 0

    def next_name(self) -> str:
        while self._idx < len(self._pool):
            name = self._pool[self._idx]
            self._idx += 1
            if name not in self._used:
                self._used.add(name)
                return name

        suffix = 1
        while True:
            base = self._pool[self._rng.randrange(0, len(self._pool))]
            candidate = f"{base} {suffix}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate
            suffix += 1

    def club_names(self, country: str, count: int) -> list[str]:
        """Unique club names for a country, built from its city list.

        Cities are used at most once per country; once exhausted the names get a
        numeric suffix so the registry never sees a duplicate.
        """
        cities = list(CITY_NAMES.get(country, CITY_NAMES["ENG"]))
        prefixes = CLUB_PREFIXES.get(country, ["FC"])
        self._rng.shuffle(cities)
        names: list[str] = []
        for idx in range(count):
            city = cities[idx % len(cities)]
            if country == "ENG":
                name = f"{city} {self._rng.choice(ENGLISH_SUFFIXES)}"
            else:
                prefix = self._rng.choice(prefixes)
                name = f"{prefix} {city}".strip()
            if idx >= len(cities):
                name = f"{name} {idx // len(cities) + 1}"
            while name in self._used:
                name = f"{name} II"
            self._used.add(name)
            names.append(name)
        return names

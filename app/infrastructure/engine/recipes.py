from dataclasses import dataclass
from typing import Dict, List, Optional

GO_DOCKERFILE = """
FROM golang:alpine

WORKDIR /go/src/app
COPY . .

RUN go get -d -v ./...
RUN go install -v ./...

CMD ["app"]
"""

SWIFT_DOCKERFILE = """
FROM swift:latest

WORKDIR /app
COPY . .
RUN swiftc -o /app/main /app/*.swift

CMD ["/app/main"]
"""

JS_DOCKERFILE = """
FROM node:8-alpine

WORKDIR /app
COPY . .

CMD ["node", "/app/main.js"]
"""

C_DOCKERFILE = """
FROM gcc:4.9

WORKDIR /app
COPY . .
RUN gcc -o /app/main /app/*.c

CMD ["/app/main"]
"""


@dataclass(frozen=True)
class BuildRecipe:
    language: str
    dockerfile: str

    @property
    def source_filename(self) -> str:
        return f"main.{self.language}"


_RECIPES: Dict[str, BuildRecipe] = {
    "go": BuildRecipe("go", GO_DOCKERFILE),
    "swift": BuildRecipe("swift", SWIFT_DOCKERFILE),
    "js": BuildRecipe("js", JS_DOCKERFILE),
    "c": BuildRecipe("c", C_DOCKERFILE),
}


def get_recipe(language: str) -> Optional[BuildRecipe]:
    return _RECIPES.get(language)


def supported_languages() -> List[str]:
    return sorted(_RECIPES)

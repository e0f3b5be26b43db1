import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

from specguard.core.settings import configure_settings
from specguard.spec.loader import load

MINIMAL_SPEC = """\
openapi: 3.0.3
info:
  title: Minimal
  version: 1.0.0
paths:
  /health:
    get:
      summary: Health check
      description: Returns OK when the service is up.
      responses:
        '200':
          description: OK
"""

PETSTORE_SPEC = """\
openapi: 3.0.3
info:
  title: Petstore
  version: 1.2.0
paths:
  /pets:
    get:
      summary: List pets
      description: Returns every pet in the store.
      parameters:
        - name: limit
          in: query
          required: false
          schema:
            type: integer
            format: int32
            minimum: 1
            maximum: 100
      responses:
        '200':
          description: A list of pets
          content:
            application/json:
              schema:
                type: array
                items:
                  $ref: '#/components/schemas/Pet'
        default:
          $ref: '#/components/responses/Error'
    post:
      summary: Create a pet
      description: Adds a pet to the store.
      requestBody:
        required: true
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/NewPet'
      responses:
        '201':
          description: Created
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/Pet'
  /pets/{petId}:
    parameters:
      - $ref: '#/components/parameters/PetId'
    get:
      summary: Get a pet
      description: Returns one pet.
      responses:
        '200':
          description: The pet
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/Pet'
        '4XX':
          $ref: '#/components/responses/Error'
components:
  parameters:
    PetId:
      name: petId
      in: path
      required: true
      schema:
        type: string
        format: uuid
  responses:
    Error:
      description: Error payload
      content:
        application/json:
          schema:
            $ref: '#/components/schemas/Error'
  schemas:
    Pet:
      type: object
      required: [id, name]
      properties:
        id:
          type: string
          format: uuid
        name:
          type: string
          minLength: 1
        status:
          type: string
          enum: [available, pending, sold]
        tag:
          type: string
          nullable: true
      example:
        id: 7d444840-9dc0-11d1-b245-5ffdce74fad2
        name: Rex
    NewPet:
      type: object
      required: [name]
      properties:
        name:
          type: string
        tag:
          type: string
      example:
        name: Rex
    Error:
      type: object
      required: [code, message]
      properties:
        code:
          type: integer
        message:
          type: string
      example:
        code: 404
        message: not found
"""


@pytest.fixture(autouse=True)
def reset_settings():
    configure_settings(None)
    yield
    configure_settings(None)


@pytest.fixture(autouse=True)
def restore_package_logger():
    package_logger = logging.getLogger("specguard")
    handlers = list(package_logger.handlers)
    level, propagate = package_logger.level, package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def minimal_spec() -> str:
    return MINIMAL_SPEC


@pytest.fixture
def petstore_spec() -> str:
    return PETSTORE_SPEC


@pytest.fixture
def minimal_doc():
    return load(MINIMAL_SPEC)


@pytest.fixture
def petstore_doc():
    return load(PETSTORE_SPEC)

"""Seed data and builders for the relation store used across tests."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import (
    Company,
    Document,
    File,
    Invoice,
    Language,
    Object,
    ObjectRelation,
    ObjectRelationType,
    ObjectStatus,
    ObjectType,
    Person,
    Salutation,
    Sex,
    Transaction,
    TransactionType,
    Translation,
)

EN = 1
DE = 2

PERSON_TYPE = 1
COMPANY_TYPE = 2
DOCUMENT_TYPE = 3
INVOICE_TYPE = 4
FILE_TYPE = 5
USER_TYPE = 6
TRANSACTION_TYPE = 7
VEHICLE_TYPE = 8  # active object type with no entity definition

EMPLOYEE_OF = 1  # person -> company, mirrored by EMPLOYER_OF
EMPLOYER_OF = 2  # company -> person, mirrored by EMPLOYEE_OF
OWNS_DOCUMENT = 3  # person -> document
OWNS_VEHICLE = 4  # person -> vehicle (unregistered child type)
CONTRACTOR_OF = 5  # person -> company
FORMER_EMPLOYEE_OF = 6  # person -> company, inactive
PAYS_INVOICE = 7  # person -> invoice
INITIATED = 8  # person -> transaction
UPLOADED = 9  # person -> file

TYPE_IDS = {
    "person": PERSON_TYPE,
    "company": COMPANY_TYPE,
    "document": DOCUMENT_TYPE,
    "invoice": INVOICE_TYPE,
    "file": FILE_TYPE,
    "user": USER_TYPE,
    "transaction": TRANSACTION_TYPE,
}


async def seed_reference_data(session: AsyncSession) -> None:
    session.add_all([Language(id=EN, code="en"), Language(id=DE, code="de")])
    session.add_all(
        [
            ObjectType(id=PERSON_TYPE, code="person"),
            ObjectType(id=COMPANY_TYPE, code="company"),
            ObjectType(id=DOCUMENT_TYPE, code="document"),
            ObjectType(id=INVOICE_TYPE, code="invoice"),
            ObjectType(id=FILE_TYPE, code="file"),
            ObjectType(id=USER_TYPE, code="user"),
            ObjectType(id=TRANSACTION_TYPE, code="transaction"),
            ObjectType(id=VEHICLE_TYPE, code="vehicle"),
        ]
    )
    await session.flush()

    session.add_all(
        [
            ObjectStatus(id=1, code="person_active", object_type_id=PERSON_TYPE),
            ObjectStatus(id=2, code="company_active", object_type_id=COMPANY_TYPE),
            Sex(id=1, code="male"),
            Sex(id=2, code="female"),
            Salutation(id=1, code="mr"),
            TransactionType(id=1, code="payment"),
        ]
    )
    session.add_all(
        [
            Translation(code=code, language_id=EN, text=text)
            for code, text in {
                "person": "Person",
                "company": "Company",
                "document": "Document",
                "invoice": "Invoice",
                "file": "File",
                "user": "User",
                "transaction": "Transaction",
                "vehicle": "Vehicle",
                "person_active": "Active",
                "company_active": "Operating",
                "male": "Male",
                "female": "Female",
                "mr": "Mr.",
                "payment": "Payment",
                "contract": "Contract",
                "employee_of": "Employee of",
                "employer_of": "Employer of",
                "owns_document": "Owns document",
            }.items()
        ]
    )
    session.add_all(
        [
            Translation(code="person", language_id=DE, text="Person (de)"),
            Translation(code="employee_of", language_id=DE, text="Angestellt bei"),
        ]
    )
    await session.flush()

    session.add_all(
        [
            ObjectRelationType(
                id=EMPLOYEE_OF,
                code="employee_of",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=COMPANY_TYPE,
            ),
            ObjectRelationType(
                id=EMPLOYER_OF,
                code="employer_of",
                parent_object_type_id=COMPANY_TYPE,
                child_object_type_id=PERSON_TYPE,
            ),
            ObjectRelationType(
                id=OWNS_DOCUMENT,
                code="owns_document",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=DOCUMENT_TYPE,
            ),
            ObjectRelationType(
                id=OWNS_VEHICLE,
                code="owns_vehicle",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=VEHICLE_TYPE,
            ),
            ObjectRelationType(
                id=CONTRACTOR_OF,
                code="contractor_of",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=COMPANY_TYPE,
            ),
            ObjectRelationType(
                id=FORMER_EMPLOYEE_OF,
                code="former_employee_of",
                is_active=False,
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=COMPANY_TYPE,
            ),
            ObjectRelationType(
                id=PAYS_INVOICE,
                code="pays_invoice",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=INVOICE_TYPE,
            ),
            ObjectRelationType(
                id=INITIATED,
                code="initiated",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=TRANSACTION_TYPE,
            ),
            ObjectRelationType(
                id=UPLOADED,
                code="uploaded",
                parent_object_type_id=PERSON_TYPE,
                child_object_type_id=FILE_TYPE,
            ),
        ]
    )
    await session.flush()

    # Mirror pair, set once both rows exist
    employee_of = await session.get(ObjectRelationType, EMPLOYEE_OF)
    employer_of = await session.get(ObjectRelationType, EMPLOYER_OF)
    employee_of.mirrored_type_id = EMPLOYER_OF
    employer_of.mirrored_type_id = EMPLOYEE_OF
    await session.commit()


async def add_object(
    session: AsyncSession,
    object_type_id: int,
    is_active: bool = True,
    object_status_id: Optional[int] = None,
) -> int:
    obj = Object(object_type_id=object_type_id, is_active=is_active, object_status_id=object_status_id)
    session.add(obj)
    await session.flush()
    return obj.id


async def add_person(
    session: AsyncSession,
    first_name: str,
    last_name: str,
    is_active: bool = True,
    sex_id: Optional[int] = None,
    salutation_id: Optional[int] = None,
) -> int:
    object_id = await add_object(session, PERSON_TYPE, is_active=is_active, object_status_id=1)
    session.add(
        Person(
            id=object_id,
            first_name=first_name,
            last_name=last_name,
            sex_id=sex_id,
            salutation_id=salutation_id,
            birth_date=date(1980, 5, 17),
        )
    )
    await session.commit()
    return object_id


async def add_company(session: AsyncSession, name: str, is_active: bool = True) -> int:
    object_id = await add_object(session, COMPANY_TYPE, is_active=is_active, object_status_id=2)
    session.add(Company(id=object_id, company_id=f"C-{object_id}", company_name=name))
    await session.commit()
    return object_id


async def add_document(session: AsyncSession, name: str, document_type: Optional[str] = "contract") -> int:
    object_id = await add_object(session, DOCUMENT_TYPE)
    session.add(Document(id=object_id, document_name=name, document_type=document_type))
    await session.commit()
    return object_id


async def add_invoice(session: AsyncSession, number: str) -> int:
    object_id = await add_object(session, INVOICE_TYPE)
    session.add(Invoice(id=object_id, invoice_number=number, issue_date=date(2026, 1, 31)))
    await session.commit()
    return object_id


async def add_transaction(session: AsyncSession) -> int:
    object_id = await add_object(session, TRANSACTION_TYPE)
    session.add(Transaction(id=object_id, transaction_type_id=1))
    await session.commit()
    return object_id


async def add_file(session: AsyncSession, file_name: str) -> int:
    object_id = await add_object(session, FILE_TYPE)
    session.add(File(id=object_id, file_name=file_name))
    await session.commit()
    return object_id


async def add_vehicle(session: AsyncSession) -> int:
    object_id = await add_object(session, VEHICLE_TYPE)
    await session.commit()
    return object_id


async def add_relation(
    session: AsyncSession,
    object_from_id: int,
    object_to_id: int,
    object_relation_type_id: int,
    is_active: bool = True,
    note: Optional[str] = None,
) -> int:
    relation = ObjectRelation(
        object_from_id=object_from_id,
        object_to_id=object_to_id,
        object_relation_type_id=object_relation_type_id,
        is_active=is_active,
        note=note,
    )
    session.add(relation)
    await session.commit()
    return relation.id


async def set_object_active(session: AsyncSession, object_id: int, is_active: bool) -> None:
    await session.execute(update(Object).where(Object.id == object_id).values(is_active=is_active))
    await session.commit()


@dataclass
class Graph:
    """Small relation graph around one person."""

    alice: int
    bob: int
    acme: int
    globex: int
    contract: int
    invoice: int
    transaction: int
    file: int
    vehicle: int


async def build_graph(session: AsyncSession) -> Graph:
    return Graph(
        alice=await add_person(session, "Alice", "Smith", sex_id=2, salutation_id=1),
        bob=await add_person(session, "Bob", "Jones", sex_id=1),
        acme=await add_company(session, "Acme Ltd"),
        globex=await add_company(session, "Globex"),
        contract=await add_document(session, "Employment contract"),
        invoice=await add_invoice(session, "INV-2026-001"),
        transaction=await add_transaction(session),
        file=await add_file(session, "scan.pdf"),
        vehicle=await add_vehicle(session),
    )

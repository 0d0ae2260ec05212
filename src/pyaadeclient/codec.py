"""XML codec for the AADE digital client API.

Outbound documents are built element by element; optional values that are
``None`` are left out entirely because AADE rejects empty optional elements.
Inbound documents are parsed with a hardened parser and mapped to the typed
models in :mod:`pyaadeclient.models`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any

from lxml import etree

from .exceptions import ProtocolError, ValidationError
from .models import (
    AADEError,
    AADEResponse,
    ClientCorrelationRequest,
    NewDigitalClientDoc,
    RequestClientsResponse,
    RequestedClient,
    ServiceType,
    StatusCode,
    UpdateClientRequest,
)
from .util import format_utc_timestamp, to_list

_LOGGER = logging.getLogger(__name__)

# No entity resolution, network access or DTD loading (XXE).
_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    remove_blank_text=True,
)

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def safe_fromstring(data: str | bytes) -> etree._Element:
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not data or not data.strip():
        raise ProtocolError("AADE response was empty.")
    try:
        return etree.fromstring(data, parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise ProtocolError("AADE response is not well-formed XML.") from exc


def to_xml_string(element: etree._Element) -> str:
    return _XML_DECLARATION + etree.tostring(element, encoding="unicode", pretty_print=True)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        raise ValidationError("Boolean values are not supported in AADE documents.")
    if isinstance(value, datetime):
        return format_utc_timestamp(value)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


def _append(parent: etree._Element, tag: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, str) and not value.strip():
        return
    child = etree.SubElement(parent, tag)
    child.text = _format_value(value)


def encode_new_declaration(doc: NewDigitalClientDoc) -> str:
    root = etree.Element("NewDigitalClientDoc")
    _append(root, "clientServiceType", ServiceType(doc.client_service_type))
    _append(root, "entityVatNumber", doc.entity_vat_number)
    _append(root, "customerVatNumber", doc.customer_vat_number)
    _append(root, "branch", doc.branch)
    _append(root, "comments", doc.comments)

    rental = doc.rental_details
    if doc.client_service_type == ServiceType.RENTAL and rental is not None:
        if not rental.vehicle_plate_number:
            raise ValidationError("vehicle_plate_number is required for rentals.")
        if rental.start_date_time is None:
            raise ValidationError("start_date_time is required for rentals.")
        block = etree.SubElement(root, "RentalType")
        _append(block, "vehiclePlateNumber", rental.vehicle_plate_number)
        _append(block, "vehicleBrand", rental.vehicle_brand)
        _append(block, "vehicleModel", rental.vehicle_model)
        _append(block, "vehicleYear", rental.vehicle_year)
        _append(block, "startDateTime", rental.start_date_time)
        _append(block, "estimatedEndDateTime", rental.estimated_end_date_time)
        _append(block, "startKm", rental.start_km)
        _append(block, "estimatedTotalAmount", rental.estimated_total_amount)
    return to_xml_string(root)


def encode_update(request: UpdateClientRequest) -> str:
    root = etree.Element("updateClientType")
    _append(root, "initialDclId", request.initial_dcl_id)
    _append(root, "clientServiceType", ServiceType(request.client_service_type))
    _append(root, "amount", request.amount)
    _append(root, "completionDateTime", request.completion_date_time)
    _append(root, "invoiceKind", request.invoice_kind)
    _append(root, "comments", request.comments)
    _append(root, "endKm", request.end_km)
    _append(root, "actualEndDateTime", request.actual_end_date_time)
    return to_xml_string(root)


def encode_correlation(request: ClientCorrelationRequest) -> str:
    dcl_ids = to_list(request.correlated_dcl_ids)
    if not dcl_ids:
        raise ValidationError("At least one DCL id is required for a correlation.")
    root = etree.Element("clientCorrelationType")
    _append(root, "entityVatNumber", request.entity_vat_number)
    _append(root, "mark", request.mark)
    _append(root, "correlatedDCLids", ",".join(_format_value(dcl_id) for dcl_id in dcl_ids))
    return to_xml_string(root)


def _local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def _children(parent: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in parent if _local_name(child) == name]


def _child(parent: etree._Element, name: str) -> etree._Element | None:
    matches = _children(parent, name)
    return matches[0] if matches else None


def _text(parent: etree._Element, name: str) -> str | None:
    child = _child(parent, name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _number(parent: etree._Element, name: str) -> int | float | None:
    raw = _text(parent, name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as exc:
        raise ProtocolError(f"AADE returned a non-numeric {name}: {raw!r}.") from exc


def _integer(parent: etree._Element, name: str) -> int | None:
    value = _number(parent, name)
    if value is None:
        return None
    if isinstance(value, float):
        if not value.is_integer():
            raise ProtocolError(f"AADE returned a non-integer {name}.")
        return int(value)
    return value


def _repeated(
    parent: etree._Element,
    name: str,
    item_name: str,
) -> list[etree._Element]:
    """Collect repeated entries regardless of their wire shape.

    AADE sends repeated data either as sibling elements, as one wrapper with
    ``item_name`` children, or as a single element. All shapes become a list.
    """
    entries: list[etree._Element] = []
    for element in _children(parent, name):
        items = _children(element, item_name)
        entries.extend(items if items else [element])
    return entries


def _decode_errors(response: etree._Element) -> list[AADEError]:
    errors: list[AADEError] = []
    for entry in _repeated(response, "errors", "error"):
        code = _text(entry, "code")
        message = _text(entry, "message")
        if code is None and message is None:
            continue
        errors.append(AADEError(code=code or "", message=message or ""))
    return errors


def decode_response(xml: str | bytes) -> AADEResponse:
    root = safe_fromstring(xml)
    if _local_name(root) != "ResponseDoc":
        raise ProtocolError(f"Unexpected AADE response root element {_local_name(root)!r}.")
    response = _child(root, "response")
    if response is None:
        raise ProtocolError("AADE response did not include a response element.")

    raw_status = _text(response, "statusCode")
    if raw_status is None:
        raise ProtocolError("AADE response did not include a statusCode.")
    try:
        status_code = StatusCode(raw_status)
    except ValueError as exc:
        raise ProtocolError(f"AADE returned an unknown statusCode {raw_status!r}.") from exc

    decoded = AADEResponse(
        status_code=status_code,
        errors=_decode_errors(response),
        new_client_dcl_id=_integer(response, "newClientDclID"),
        updated_client_dcl_id=_integer(response, "updatedClientDclID"),
        cancellation_id=_integer(response, "cancellationID"),
    )
    _LOGGER.debug(
        "Decoded AADE response %s with %d error(s)",
        decoded.status_code.value,
        len(decoded.errors),
    )
    return decoded


def _service_type(value: int | None) -> ServiceType | None:
    if value is None:
        return None
    try:
        return ServiceType(value)
    except ValueError as exc:
        raise ProtocolError(f"AADE returned an unknown clientServiceType {value}.") from exc


def _decode_client(element: etree._Element) -> RequestedClient:
    id_dcl = _integer(element, "idDcl")
    if id_dcl is None:
        raise ProtocolError("AADE client record did not include idDcl.")
    return RequestedClient(
        id_dcl=id_dcl,
        client_service_type=_service_type(_integer(element, "clientServiceType")),
        entity_vat_number=_text(element, "entityVatNumber"),
        customer_vat_number=_text(element, "customerVatNumber"),
        created_at=_text(element, "createdAt"),
        updated_at=_text(element, "updatedAt"),
        cancelled_at=_text(element, "cancelledAt"),
        amount=_number(element, "amount"),
        invoice_mark=_text(element, "invoiceMark"),
    )


def _decode_clients(root: etree._Element) -> Iterable[RequestedClient]:
    for element in _children(root, "clientsDoc"):
        if len(element) == 0:
            continue
        nested = [child for child in element if _child(child, "idDcl") is not None]
        if nested and _child(element, "idDcl") is None:
            yield from (_decode_client(child) for child in nested)
        else:
            yield _decode_client(element)


def decode_client_list(xml: str | bytes) -> RequestClientsResponse:
    root = safe_fromstring(xml)
    if _local_name(root) != "RequestedDoc":
        raise ProtocolError(
            f"Unexpected AADE RequestClients root element {_local_name(root)!r}."
        )
    return RequestClientsResponse(
        entity_vat_number=_text(root, "entityVatNumber"),
        clients=list(_decode_clients(root)),
        continuation_token=_text(root, "continuationToken"),
    )

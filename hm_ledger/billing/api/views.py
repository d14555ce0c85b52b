# hm_ledger/billing/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from hm_ledger.billing.api.serializers import (
    BillCancelSerializer,
    BillCreateSerializer,
    BillingSummarySerializer,
    BillSerializer,
    BillUpdateSerializer,
    OverdueSweepRequestSerializer,
    OverdueSweepResultSerializer,
    PatientTotalDueSerializer,
    PaymentCreateSerializer,
)
from hm_ledger.billing.models import Bill
from hm_ledger.billing.selectors import billing_summary, get_bill, get_total_due, list_bills, list_overdue
from hm_ledger.billing.services import BillService, PaymentService
from hm_ledger.billing.sweeps import OverdueScanner


def _uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid UUID"})


class BillViewSet(viewsets.GenericViewSet):
    """
    Billing ledger:
    - list/retrieve/create/partial_update/destroy
    - payment, cancel
    - overdue listing and the overdue sweep
    """
    serializer_class = BillSerializer
    queryset = Bill.objects.none()

    @extend_schema(
        tags=["Billing"],
        responses={200: BillSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="appointment", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False
            ),
        ],
    )
    def list(self, request):
        qs = list_bills(
            patient_id=_uuid_or_none(request.query_params.get("patient"), "patient"),
            status=request.query_params.get("status") or None,
            appointment_id=_uuid_or_none(request.query_params.get("appointment"), "appointment"),
        )
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(BillSerializer(page, many=True).data)
        return Response(BillSerializer(qs, many=True).data)

    @extend_schema(tags=["Billing"], responses={200: BillSerializer})
    def retrieve(self, request, pk=None):
        bill = get_bill(bill_id=pk)
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=BillCreateSerializer, responses={201: BillSerializer})
    def create(self, request):
        ser = BillCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        bill = BillService.create_bill(
            patient_id=data["patient_id"],
            appointment_id=data.get("appointment_id"),
            bill_amount=data["bill_amount"],
            bill_date=data["bill_date"],
            due_date=data["due_date"],
            itemized_charges=data.get("itemized_charges", ""),
            notes=data.get("notes", ""),
            insurance_claim_number=data.get("insurance_claim_number", ""),
            insurance_coverage=data.get("insurance_coverage"),
        )
        return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Billing"], request=BillUpdateSerializer, responses={200: BillSerializer})
    def partial_update(self, request, pk=None):
        if not isinstance(request.data, dict):
            raise DRFValidationError({"non_field_errors": ["Expected a JSON object of bill fields."]})

        ser = BillUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        # Keys the serializer does not know (financial or unknown) are passed through
        # so the ledger rejects them along with the bill's current amounts.
        patch = {k: request.data[k] for k in request.data if k not in ser.fields}
        patch.update(ser.validated_data)

        bill = BillService.update_bill(bill_id=pk, patch=patch)
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={204: None})
    def destroy(self, request, pk=None):
        BillService.delete_bill(bill_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Billing"], request=PaymentCreateSerializer, responses={200: BillSerializer})
    @action(detail=True, methods=["post"], url_path="payment")
    def payment(self, request, pk=None):
        ser = PaymentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bill = PaymentService.apply_payment(
            bill_id=pk,
            amount=ser.validated_data["amount"],
            method=ser.validated_data["payment_method"],
        )
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=BillCancelSerializer, responses={200: BillSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        ser = BillCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bill = BillService.cancel_bill(bill_id=pk, reason=ser.validated_data.get("reason", ""))
        return Response(BillSerializer(bill).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], responses={200: BillSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="overdue")
    def overdue(self, request):
        qs = list_overdue()
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(BillSerializer(page, many=True).data)
        return Response(BillSerializer(qs, many=True).data)

    @extend_schema(
        tags=["Billing"],
        request=OverdueSweepRequestSerializer,
        responses={200: OverdueSweepResultSerializer},
    )
    @action(detail=False, methods=["post"], url_path="update-overdue")
    def update_overdue(self, request):
        ser = OverdueSweepRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = OverdueScanner.run_overdue_sweep(as_of=ser.validated_data.get("as_of"))
        return Response(OverdueSweepResultSerializer(result.as_dict()).data, status=status.HTTP_200_OK)


class PatientTotalDueView(APIView):
    """
    /billing/patients/<patient_id>/total-due/
    """

    @extend_schema(tags=["Billing"], responses={200: PatientTotalDueSerializer})
    def get(self, request, patient_id: UUID):
        total = get_total_due(patient_id=patient_id)
        data = {"patient_id": patient_id, "total_due": total}
        return Response(PatientTotalDueSerializer(data).data, status=status.HTTP_200_OK)


class BillingSummaryView(APIView):
    @extend_schema(tags=["Billing"], responses={200: BillingSummarySerializer})
    def get(self, request):
        return Response(BillingSummarySerializer(billing_summary()).data, status=status.HTTP_200_OK)

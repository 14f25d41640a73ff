# notifications/views.py
# FEATURE: Back-office API for e-mail templates, template parts, the e-mail log and SMTP settings.

from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend

from .models import EmailTemplate, EmailTemplatePart, EmailLog, EmailSettings
from .serializers import (
    EmailTemplateSerializer, EmailTemplatePartSerializer, EmailLogSerializer,
    EmailSettingsSerializer, TemplatePreviewSerializer, TestEmailSerializer,
)
from .services import send_email, test_email_connection, render_email_html
from .templating import compose_template, process_template

# Used to preview templates without a real booking.
SAMPLE_DATA = {
    'reference': 'CDB-2607-TEST',
    'guest_name': 'Maria Muster',
    'first_name': 'Maria',
    'last_name': 'Muster',
    'email': 'maria.muster@example.com',
    'start_date': '04.07.2026',
    'end_date': '11.07.2026',
    'nights': 7,
    'num_adults': 2,
    'num_children': 1,
    'total_price': '1.085,00 €',
    'total_on_site': '50,00 €',
    'deposit_amount': '325,50 €',
    'deposit_due_date': '10.03.2026',
    'remaining_amount': '759,50 €',
    'remaining_due_date': '04.06.2026',
    'online_fees': [{'name': 'Frühstück', 'amount': '210,00 €'}],
    'on_site_fees': [{'name': 'Endreinigung', 'amount': '50,00 €'}],
    'bank_holder': 'Barbara Muster',
    'bank_iban': 'DE02 1203 0000 0000 2020 51',
    'bank_bic': 'BYLADEM1001',
    'site_name': 'Casa di Barbara',
    'name': 'Maria Muster',
    'subject': 'Anfrage für Juli',
    'message': 'Ist die Wohnung im Juli noch frei?',
    'reply': 'Ja, vom 4. bis 11. Juli ist noch frei.',
}


class EmailTemplateViewSet(viewsets.ModelViewSet):
    queryset = EmailTemplate.objects.all()
    serializer_class = EmailTemplateSerializer
    filterset_fields = ['type', 'is_active']

    @action(detail=True, methods=['post'])
    def preview(self, request, pk=None):
        template = self.get_object()
        serializer = TemplatePreviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        language = serializer.validated_data['language']
        data = dict(SAMPLE_DATA, **serializer.validated_data.get('data', {}))

        rendered = compose_template(template, language)
        body = process_template(rendered['body'], data)
        return Response({
            'subject': process_template(rendered['subject'], data),
            'body': body,
            'html': render_email_html(process_template(rendered['body'], data, escape=True), language),
        }, status=status.HTTP_200_OK)


class EmailTemplatePartViewSet(viewsets.ModelViewSet):
    queryset = EmailTemplatePart.objects.all()
    serializer_class = EmailTemplatePartSerializer


class EmailLogViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = EmailLog.objects.all()
    serializer_class = EmailLogSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['status', 'template_name', 'language']
    search_fields = ['recipient', 'subject']


class EmailSettingsViewSet(viewsets.ModelViewSet):
    queryset = EmailSettings.objects.all()
    serializer_class = EmailSettingsSerializer


class SendTestEmailAPIView(APIView):
    """Sends a template (filled with sample data) or a free text e-mail right away."""

    def post(self, request):
        serializer = TestEmailSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        result = send_email(
            data['to'],
            template_name=data.get('template_name') or None,
            subject=data.get('subject'),
            content=data.get('content'),
            data=SAMPLE_DATA,
            language=data['language'],
        )
        return Response(result, status=status.HTTP_200_OK if result['success'] else status.HTTP_400_BAD_REQUEST)


class TestConnectionAPIView(APIView):

    def post(self, request):
        result = test_email_connection()
        return Response(result, status=status.HTTP_200_OK if result['success'] else status.HTTP_400_BAD_REQUEST)

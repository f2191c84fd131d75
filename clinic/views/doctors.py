from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import Doctor
from clinic.permissions import require_access
from clinic.serializers.output import doctor_dict


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors(request):
    """Doctor directory used by the booking form; ``?specialization=`` narrows it."""
    require_access(request, 'doctors.list')
    qs = Doctor.objects.select_related('user').filter(user__is_active=True).order_by('user__last_name')
    specialization = (request.query_params.get('specialization') or '').strip()
    if specialization:
        qs = qs.filter(specialization__iexact=specialization)
    return Response({'ok': True, 'doctors': [doctor_dict(d) for d in qs[:settings.API_LIST_LIMIT]]})

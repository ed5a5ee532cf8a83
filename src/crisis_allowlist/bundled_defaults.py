"""
Bundled crisis resources - the protected set shipped with the package.

These records are always protected, with or without network access and
regardless of what any sync returns. Grouped by region:
- United States
- United Kingdom
- Australia
- Canada
- International directories
"""

from .enums import ResourceCategory
from .models import ProtectedDomainRecord

BUNDLED_VERSION = "1.0.0"
BUNDLED_LAST_UPDATED = "2026-10-01T00:00:00Z"


# ============================================================================
# UNITED STATES
# ============================================================================
US_RESOURCES = [
    ProtectedDomainRecord(id="us-988-lifeline", domain="988lifeline.org", category=ResourceCategory.SUICIDE.value, name="988 Suicide & Crisis Lifeline", description="Free, confidential support for people in suicidal crisis or emotional distress", aliases=("suicidepreventionlifeline.org",), pattern="*.988lifeline.org", phone="988", text="988", region="us"),
    ProtectedDomainRecord(id="us-crisis-text-line", domain="crisistextline.org", category=ResourceCategory.CRISIS.value, name="Crisis Text Line", description="Text-based crisis support, 24/7", pattern="*.crisistextline.org", text="741741", region="us"),
    ProtectedDomainRecord(id="us-rainn", domain="rainn.org", category=ResourceCategory.SEXUAL_ASSAULT.value, name="RAINN", description="National Sexual Assault Hotline", pattern="*.rainn.org", phone="1-800-656-4673", region="us"),
    ProtectedDomainRecord(id="us-trevor-project", domain="thetrevorproject.org", category=ResourceCategory.LGBTQ.value, name="The Trevor Project", description="Crisis intervention and suicide prevention for LGBTQ+ young people", pattern="*.thetrevorproject.org", phone="1-866-488-7386", text="678-678", region="us"),
    ProtectedDomainRecord(id="us-childhelp", domain="childhelp.org", category=ResourceCategory.CHILD_ABUSE.value, name="Childhelp National Child Abuse Hotline", description="Support for children and adults affected by child abuse", aliases=("childhelphotline.org",), phone="1-800-422-4453", text="1-800-422-4453", region="us"),
    ProtectedDomainRecord(id="us-domestic-violence-hotline", domain="thehotline.org", category=ResourceCategory.DOMESTIC_VIOLENCE.value, name="National Domestic Violence Hotline", description="Confidential support for anyone affected by domestic violence", pattern="*.thehotline.org", phone="1-800-799-7233", text="88788", region="us"),
    ProtectedDomainRecord(id="us-loveisrespect", domain="loveisrespect.org", category=ResourceCategory.DOMESTIC_VIOLENCE.value, name="love is respect", description="Dating abuse support for young people", phone="1-866-331-9474", text="22522", region="us"),
    ProtectedDomainRecord(id="us-trans-lifeline", domain="translifeline.org", category=ResourceCategory.LGBTQ.value, name="Trans Lifeline", description="Peer support run by and for trans people", phone="1-877-565-8860", region="us"),
    ProtectedDomainRecord(id="us-samhsa", domain="samhsa.gov", category=ResourceCategory.SUBSTANCE_ABUSE.value, name="SAMHSA National Helpline", description="Treatment referral for mental and substance use disorders", aliases=("findtreatment.gov",), phone="1-800-662-4357", region="us"),
    ProtectedDomainRecord(id="us-nami", domain="nami.org", category=ResourceCategory.MENTAL_HEALTH.value, name="NAMI HelpLine", description="Mental health information and referrals", phone="1-800-950-6264", text="62640", region="us"),
    ProtectedDomainRecord(id="us-neda", domain="nationaleatingdisorders.org", category=ResourceCategory.EATING_DISORDER.value, name="National Eating Disorders Association", description="Eating disorder support and resources", region="us"),
    ProtectedDomainRecord(id="us-veterans-crisis-line", domain="veteranscrisisline.net", category=ResourceCategory.SUICIDE.value, name="Veterans Crisis Line", description="Crisis support for veterans and their families", phone="988", text="838255", region="us"),
    ProtectedDomainRecord(id="us-trafficking-hotline", domain="humantraffickinghotline.org", category=ResourceCategory.HUMAN_TRAFFICKING.value, name="National Human Trafficking Hotline", description="Support for victims and survivors of human trafficking", aliases=("polarisproject.org",), phone="1-888-373-7888", text="233733", region="us"),
    ProtectedDomainRecord(id="us-runaway-safeline", domain="1800runaway.org", category=ResourceCategory.RUNAWAY.value, name="National Runaway Safeline", description="Support for youth who are runaway, homeless or thinking of leaving home", phone="1-800-786-2929", region="us"),
    ProtectedDomainRecord(id="us-teen-line", domain="teenline.org", category=ResourceCategory.CRISIS.value, name="Teen Line", description="Teens helping teens", text="839863", region="us"),
    ProtectedDomainRecord(id="us-stop-it-now", domain="stopitnow.org", category=ResourceCategory.CHILD_ABUSE.value, name="Stop It Now", description="Confidential help to prevent child sexual abuse", phone="1-888-773-8368", region="us"),
]


# ============================================================================
# UNITED KINGDOM
# ============================================================================
UK_RESOURCES = [
    ProtectedDomainRecord(id="uk-samaritans", domain="samaritans.org", category=ResourceCategory.SUICIDE.value, name="Samaritans", description="Emotional support for anyone struggling to cope", pattern="*.samaritans.org", phone="116 123", regional=True, region="uk"),
    ProtectedDomainRecord(id="uk-childline", domain="childline.org.uk", category=ResourceCategory.CHILD_ABUSE.value, name="Childline", description="Free, private and confidential service for young people", pattern="*.childline.org.uk", phone="0800 1111", regional=True, region="uk"),
    ProtectedDomainRecord(id="uk-refuge", domain="refuge.org.uk", category=ResourceCategory.DOMESTIC_VIOLENCE.value, name="Refuge", description="National Domestic Abuse Helpline", aliases=("nationaldahelpline.org.uk",), phone="0808 2000 247", regional=True, region="uk"),
    ProtectedDomainRecord(id="uk-shout", domain="giveusashout.org", category=ResourceCategory.CRISIS.value, name="Shout", description="Free, confidential text support", text="85258", regional=True, region="uk"),
    ProtectedDomainRecord(id="uk-papyrus", domain="papyrus-uk.org", category=ResourceCategory.SUICIDE.value, name="PAPYRUS HOPELINE247", description="Suicide prevention for young people", phone="0800 068 4141", text="88247", regional=True, region="uk"),
]


# ============================================================================
# AUSTRALIA
# ============================================================================
AU_RESOURCES = [
    ProtectedDomainRecord(id="au-lifeline", domain="lifeline.org.au", category=ResourceCategory.SUICIDE.value, name="Lifeline Australia", description="24-hour crisis support and suicide prevention", pattern="*.lifeline.org.au", phone="13 11 14", text="0477 13 11 14", regional=True, region="au"),
    ProtectedDomainRecord(id="au-kids-helpline", domain="kidshelpline.com.au", category=ResourceCategory.CRISIS.value, name="Kids Helpline", description="Counselling for young people aged 5 to 25", phone="1800 55 1800", regional=True, region="au"),
    ProtectedDomainRecord(id="au-1800respect", domain="1800respect.org.au", category=ResourceCategory.DOMESTIC_VIOLENCE.value, name="1800RESPECT", description="Sexual assault, domestic and family violence counselling", phone="1800 737 732", regional=True, region="au"),
    ProtectedDomainRecord(id="au-beyond-blue", domain="beyondblue.org.au", category=ResourceCategory.MENTAL_HEALTH.value, name="Beyond Blue", description="Mental health support", phone="1300 22 4636", regional=True, region="au"),
]


# ============================================================================
# CANADA
# ============================================================================
CA_RESOURCES = [
    ProtectedDomainRecord(id="ca-kids-help-phone", domain="kidshelpphone.ca", category=ResourceCategory.CRISIS.value, name="Kids Help Phone", description="24/7 support for young people in Canada", phone="1-800-668-6868", text="686868", regional=True, region="ca"),
    ProtectedDomainRecord(id="ca-talk-suicide", domain="talksuicide.ca", category=ResourceCategory.SUICIDE.value, name="Talk Suicide Canada", description="Suicide crisis helpline", aliases=("988.ca",), phone="988", text="988", regional=True, region="ca"),
]


# ============================================================================
# INTERNATIONAL DIRECTORIES
# ============================================================================
INTERNATIONAL_RESOURCES = [
    ProtectedDomainRecord(id="intl-befrienders", domain="befrienders.org", category=ResourceCategory.SUICIDE.value, name="Befrienders Worldwide", description="Directory of emotional support helplines worldwide", region="intl"),
    ProtectedDomainRecord(id="intl-find-a-helpline", domain="findahelpline.com", category=ResourceCategory.CRISIS.value, name="Find A Helpline", description="Directory of free, confidential helplines by country", region="intl"),
]


BUNDLED_RESOURCES: list[ProtectedDomainRecord] = (
    US_RESOURCES
    + UK_RESOURCES
    + AU_RESOURCES
    + CA_RESOURCES
    + INTERNATIONAL_RESOURCES
)


def get_bundled_resources() -> list[ProtectedDomainRecord]:
    """Return a copy of the bundled resource list."""
    return list(BUNDLED_RESOURCES)


def get_bundled_domains() -> list[str]:
    """Flattened primary domains and aliases of every bundled resource."""
    domains: list[str] = []
    for record in BUNDLED_RESOURCES:
        domains.extend(record.all_domains())
    return domains


def get_bundled_patterns() -> list[str]:
    """Wildcard patterns of every bundled resource that defines one."""
    return [record.pattern for record in BUNDLED_RESOURCES if record.pattern]
